import pytest

from insta.client.types import AccountClientError
from insta.tools.action_tools import COMMENT_MAX_LENGTH, DEFAULT_LIKE_MODULE
from insta.tools.registry import AUTHENTICATION_REQUIRED_MESSAGE

WRITE_CALLS = [
    ("instagram_comment_on_post", {"mediaId": "1", "text": "hi"}),
    ("instagram_like_post", {"mediaId": "1"}),
    ("instagram_like_comment", {"commentId": "2"}),
    ("instagram_follow_user", {"userId": "3"}),
]


class TestWriteToolsRequireLogin:
    @pytest.mark.parametrize(("name", "arguments"), WRITE_CALLS)
    async def test_rejected_when_logged_out(self, registry, fake_client, name, arguments):
        result = await registry.dispatch(name, arguments)

        assert result.is_error is True
        assert result.text == f"Error: {AUTHENTICATION_REQUIRED_MESSAGE}"
        assert fake_client.calls == []


class TestCommentOnPostTool:
    async def test_comment(self, registry, logged_in, fake_client):
        result = await registry.dispatch("instagram_comment_on_post", {"mediaId": "1", "text": "  Nice shot  "})

        assert result.is_error is False
        assert result.text == "Successfully commented on post with media ID: 1. Comment ID: 555"
        assert ("comment", ("1", "Nice shot", None)) in fake_client.calls

    async def test_reply(self, registry, logged_in, fake_client):
        result = await registry.dispatch(
            "instagram_comment_on_post",
            {"mediaId": "1", "text": "Agreed", "replyToCommentId": "77"},
        )

        assert result.text.endswith("(reply to comment 77)")
        assert ("comment", ("1", "Agreed", "77")) in fake_client.calls

    async def test_text_at_limit_is_accepted(self, registry, logged_in):
        result = await registry.dispatch("instagram_comment_on_post", {"mediaId": "1", "text": "x" * COMMENT_MAX_LENGTH})

        assert result.is_error is False

    async def test_text_over_limit_is_rejected(self, registry, logged_in, fake_client):
        result = await registry.dispatch("instagram_comment_on_post", {"mediaId": "1", "text": "x" * 2201})

        assert result.is_error is True
        assert "2200" in result.text
        assert "(current: 2201)" in result.text
        assert "comment" not in fake_client.call_names()

    async def test_blank_text_is_rejected(self, registry, logged_in):
        result = await registry.dispatch("instagram_comment_on_post", {"mediaId": "1", "text": "   "})

        assert result.text == "Error: text cannot be empty"

    async def test_comments_disabled(self, registry, logged_in, fake_client):
        fake_client.errors["comment"] = AccountClientError("Comments are disabled for this media")

        result = await registry.dispatch("instagram_comment_on_post", {"mediaId": "1", "text": "hi"})

        assert result.text == "Error: Comments are disabled on this post (media ID: 1)."

    async def test_spam_rejection(self, registry, logged_in, fake_client):
        fake_client.errors["comment"] = AccountClientError("feedback_required: spam")

        result = await registry.dispatch("instagram_comment_on_post", {"mediaId": "1", "text": "hi"})

        assert result.text == "Error: Invalid comment text. Please check your comment and try again."


class TestLikePostTool:
    async def test_like(self, registry, logged_in, fake_client):
        result = await registry.dispatch("instagram_like_post", {"mediaId": "1"})

        assert result.text == "Successfully liked post with media ID: 1"
        assert ("like_media", ("1", DEFAULT_LIKE_MODULE)) in fake_client.calls

    async def test_module_is_passed_and_reported(self, registry, logged_in, fake_client):
        result = await registry.dispatch("instagram_like_post", {"mediaId": "1", "module": "profile"})

        assert result.text == "Successfully liked post with media ID: 1 (module: profile)"
        assert ("like_media", ("1", "profile")) in fake_client.calls

    async def test_already_liked_is_success(self, registry, logged_in, fake_client):
        fake_client.errors["like_media"] = AccountClientError("Post already liked")

        result = await registry.dispatch("instagram_like_post", {"mediaId": "1"})

        assert result.is_error is False
        assert result.text == 'Post with media ID "1" is already liked.'


class TestLikeCommentTool:
    async def test_like(self, registry, logged_in, fake_client):
        result = await registry.dispatch("instagram_like_comment", {"commentId": "2"})

        assert result.text == "Successfully liked comment with ID: 2"
        assert ("like_comment", ("2",)) in fake_client.calls

    async def test_non_numeric_id(self, registry, logged_in):
        result = await registry.dispatch("instagram_like_comment", {"commentId": "abc"})

        assert result.is_error is True
        assert "commentId must be numeric" in result.text

    async def test_already_liked_is_success(self, registry, logged_in, fake_client):
        fake_client.errors["like_comment"] = AccountClientError("Comment already liked")

        result = await registry.dispatch("instagram_like_comment", {"commentId": "2"})

        assert result.is_error is False
        assert result.text == 'Comment with ID "2" is already liked.'


class TestFollowUserTool:
    async def test_follow_public_account(self, registry, logged_in, fake_client):
        result = await registry.dispatch("instagram_follow_user", {"userId": "3"})

        assert result.text == "Successfully followed user with ID: 3"
        assert ("follow", ("3",)) in fake_client.calls

    async def test_follow_private_account_sends_request(self, registry, logged_in, fake_client):
        fake_client.follow_status = {"following": False, "outgoing_request": True}

        result = await registry.dispatch("instagram_follow_user", {"userId": "3"})

        assert result.text.endswith("(follow request sent - approval required for private account)")

    async def test_already_following_is_success(self, registry, logged_in, fake_client):
        fake_client.errors["follow"] = AccountClientError("You are already following this user")

        result = await registry.dispatch("instagram_follow_user", {"userId": "3"})

        assert result.is_error is False
        assert result.text == 'User with ID "3" is already being followed.'

    async def test_restricted_account(self, registry, logged_in, fake_client):
        fake_client.errors["follow"] = AccountClientError("You cannot follow this account right now")

        result = await registry.dispatch("instagram_follow_user", {"userId": "3"})

        assert result.text == 'Error: Cannot follow user with ID "3". The user may have restrictions.'

    async def test_missing_user_id(self, registry, logged_in):
        result = await registry.dispatch("instagram_follow_user", {})

        assert result.text == "Error: userId is required"
