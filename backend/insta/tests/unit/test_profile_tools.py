import pytest

from insta.tools.registry import AUTHENTICATION_REQUIRED_MESSAGE

SEARCH_HITS = [
    {"pk": "11", "username": "alice", "full_name": "Alice A", "is_verified": True, "follower_count": 1500},
    {"pk": "12", "username": "alicia", "full_name": "Alicia B", "is_private": True, "follower_count": 20},
    {"pk": "13", "username": "ali", "full_name": "Ali C", "follower_count": 7},
]


class TestUserProfileTool:
    async def test_by_user_id(self, registry, fake_client):
        fake_client.users["42"] = {"pk": "42", "username": "someone", "full_name": "Some One", "follower_count": 12345}

        result = await registry.dispatch("instagram_get_user_profile", {"userId": "42"})

        assert result.is_error is False
        assert result.text.startswith("Profile Information for @someone:")
        assert "• Followers: 12,345" in result.text
        assert ("user_info", ("42",)) in fake_client.calls

    async def test_by_username_drops_leading_at(self, registry, fake_client):
        result = await registry.dispatch("instagram_get_user_profile", {"username": "@someone"})

        assert result.is_error is False
        assert ("user_info_by_username", ("someone",)) in fake_client.calls

    async def test_does_not_require_login(self, registry, auth_manager):
        result = await registry.dispatch("instagram_get_user_profile", {"userId": "42"})

        assert result.is_error is False
        assert auth_manager.is_authenticated() is False

    async def test_both_identifiers_are_rejected(self, registry, fake_client):
        result = await registry.dispatch("instagram_get_user_profile", {"userId": "1", "username": "x"})

        assert result.is_error is True
        assert "Both userId and username cannot be provided" in result.text
        assert fake_client.calls == []

    async def test_neither_identifier_is_rejected(self, registry):
        result = await registry.dispatch("instagram_get_user_profile", {})

        assert result.text == "Error: Either userId or username must be provided."

    async def test_empty_strings_count_as_missing(self, registry):
        result = await registry.dispatch("instagram_get_user_profile", {"userId": "", "username": ""})

        assert result.text == "Error: Either userId or username must be provided."

    @pytest.mark.parametrize("blank", ["", "   "])
    async def test_blank_user_id_defers_to_username(self, registry, fake_client, blank):
        result = await registry.dispatch("instagram_get_user_profile", {"userId": blank, "username": "someone"})

        assert result.is_error is False
        assert ("user_info_by_username", ("someone",)) in fake_client.calls

    async def test_whitespace_only_identifiers_count_as_missing(self, registry):
        result = await registry.dispatch("instagram_get_user_profile", {"userId": " ", "username": "\t"})

        assert result.text == "Error: Either userId or username must be provided."

    @pytest.mark.parametrize(
        ("arguments", "message"),
        [
            ({"userId": "abc"}, "userId must be numeric"),
            ({"username": "bad-name!"}, "letters, numbers, periods, and underscores"),
            ({"username": "a" * 31}, "cannot exceed 30 characters"),
        ],
    )
    async def test_malformed_identifiers(self, registry, arguments, message):
        result = await registry.dispatch("instagram_get_user_profile", arguments)

        assert result.is_error is True
        assert message in result.text


class TestSearchAccountsTool:
    async def test_requires_login(self, registry, fake_client):
        result = await registry.dispatch("instagram_search_accounts", {"query": "ali"})

        assert result.text == f"Error: {AUTHENTICATION_REQUIRED_MESSAGE}"
        assert "search_users" not in fake_client.call_names()

    async def test_lists_matches(self, registry, logged_in, fake_client):
        fake_client.search_results = SEARCH_HITS

        result = await registry.dispatch("instagram_search_accounts", {"query": "ali"})

        assert result.text.startswith('Found 3 accounts matching "ali":')
        assert "1. @alice ✓" in result.text
        assert "🔒 Private Account" in result.text
        assert "Followers: 1,500" in result.text

    async def test_limit_truncates(self, registry, logged_in, fake_client):
        fake_client.search_results = SEARCH_HITS

        result = await registry.dispatch("instagram_search_accounts", {"query": "ali", "limit": 2})

        assert result.text.startswith('Found 2 accounts matching "ali" (showing first 2 of 3 total):')
        assert "@ali\n" not in result.text

    async def test_no_matches(self, registry, logged_in):
        result = await registry.dispatch("instagram_search_accounts", {"query": "nobody"})

        assert result.text == 'No accounts found matching "nobody"'

    async def test_query_is_trimmed(self, registry, logged_in, fake_client):
        await registry.dispatch("instagram_search_accounts", {"query": "  ali  "})

        assert ("search_users", ("ali",)) in fake_client.calls

    async def test_blank_query_is_rejected(self, registry):
        result = await registry.dispatch("instagram_search_accounts", {"query": "  "})

        assert result.text == "Error: query cannot be empty"

    async def test_long_query_is_rejected(self, registry):
        result = await registry.dispatch("instagram_search_accounts", {"query": "q" * 101})

        assert result.text == "Error: query cannot exceed 100 characters"
