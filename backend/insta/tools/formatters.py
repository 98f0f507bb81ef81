"""Plain-text rendering of account data for tool results.

Inputs are dicts in one of two shapes: instagrapi model dumps
(``thumbnail_url``, ``caption_text``, ``resources``) or raw private-API
JSON as found in the timeline feed (``image_versions2``, ``caption.text``,
``carousel_media``). Each helper looks for both.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

SEPARATOR = "━" * 40

CAPTION_PREVIEW_LENGTH = 200
STORY_LIFETIME = timedelta(hours=24)

_MEDIA_TYPES = {1: "Photo", 2: "Video", 8: "Carousel"}
_STICKER_TYPES = (
    ("poll_sticker", "Poll"),
    ("question_sticker", "Question"),
    ("slider_sticker", "Slider"),
    ("quiz_sticker", "Quiz"),
    ("countdown_sticker", "Countdown"),
)

Data = dict[str, Any]


def plural(count: int, word: str, suffix: str = "s") -> str:
    return f"{count} {word}{'' if count == 1 else suffix}"


def number(value: Any) -> str:  # noqa: ANN401
    return f"{int(value or 0):,}"


def parse_timestamp(value: Any) -> datetime | None:  # noqa: ANN401
    """Accept epoch seconds or an ISO-8601 string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value, tz=UTC)
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def format_timestamp(value: Any) -> str:  # noqa: ANN401
    moment = parse_timestamp(value)
    if moment is None:
        return "N/A"
    return moment.strftime("%b %d, %Y, %I:%M %p UTC")


def _caption(media: Data) -> str:
    caption = media.get("caption_text")
    if caption:
        return caption
    raw = media.get("caption")
    if isinstance(raw, dict):
        return raw.get("text") or ""
    return raw or ""


def _preview(text: str) -> str:
    if len(text) > CAPTION_PREVIEW_LENGTH:
        return text[:CAPTION_PREVIEW_LENGTH] + "..."
    return text


def media_type(media: Data) -> str:
    kind = _MEDIA_TYPES.get(media.get("media_type") or 0)
    if kind is None and (media.get("carousel_media") or media.get("resources")):
        return "Carousel"
    return kind or "Unknown"


def _best_image(media: Data) -> str | None:
    candidates = (media.get("image_versions2") or {}).get("candidates") or []
    if candidates:
        return candidates[0].get("url")
    return media.get("thumbnail_url")


def _best_video(media: Data) -> str | None:
    versions = media.get("video_versions") or []
    if versions:
        return versions[0].get("url")
    return media.get("video_url")


def media_urls(media: Data) -> list[str]:
    """Collect the displayable URLs of a post or story, best quality first."""
    kind = media_type(media)
    if kind == "Carousel":
        urls = [_best_video(item) or _best_image(item) for item in media.get("carousel_media") or media.get("resources") or []]
    elif kind == "Video":
        urls = [_best_video(media), _best_image(media)]
    else:
        urls = [_best_image(media)]
    return [url for url in urls if url]


def _url_lines(urls: list[str]) -> list[str]:
    if not urls:
        return []
    if len(urls) == 1:
        return [f"Media URL: {urls[0]}"]
    return [f"Media URLs ({len(urls)}):", *(f"  {i}. {url}" for i, url in enumerate(urls, start=1))]


def _pagination_line(noun: str, next_cursor: str | None, *, has_more: bool) -> str:
    if has_more and next_cursor:
        return f'Pagination: Use maxId="{next_cursor}" to fetch next page'
    if has_more:
        return f"Pagination: More {noun} available. Use maxId from next request to continue."
    return f"Pagination: No more {noun} available."


def _user_id(user: Data) -> str:
    return str(user.get("pk") or user.get("id") or "N/A")


def format_profile(user: Data, *, title: str | None = None, include_private_contact: bool = False) -> str:
    username = user.get("username") or "N/A"
    lines = [title or f"Profile Information for @{username}:", SEPARATOR]
    lines += [f"Username: @{username}", f"Full Name: {user.get('full_name') or 'N/A'}", f"User ID: {_user_id(user)}"]
    if user.get("biography"):
        lines.append(f"Bio: {user['biography']}")

    picture = user.get("profile_pic_url_hd") or user.get("profile_pic_url") or "N/A"
    lines += ["", f"Profile Picture: {picture}"]
    if user.get("external_url"):
        lines.append(f"External URL: {user['external_url']}")

    lines += [
        "",
        "Statistics:",
        f"• Followers: {number(user.get('follower_count'))}",
        f"• Following: {number(user.get('following_count'))}",
        f"• Posts: {number(user.get('media_count'))}",
    ]

    is_business = bool(user.get("is_business") or user.get("is_business_account"))
    is_professional = bool(user.get("is_professional_account"))
    account_type = "Business" if is_business else "Professional" if is_professional else "Personal"
    category = user.get("category") or user.get("category_name") or user.get("business_category_name")
    lines += [
        "",
        f"Account Type: {account_type}" + (f" ({category})" if category else ""),
        f"Verification: {'✓ Verified' if user.get('is_verified') else 'Not verified'}",
        f"Privacy: {'🔒 Private' if user.get('is_private') else '🌐 Public'}",
    ]

    if is_business or is_professional:
        if user.get("public_email"):
            lines += ["", f"Public Email: {user['public_email']}"]
        if user.get("contact_phone_number") or user.get("public_phone_number"):
            lines.append(f"Contact Phone: {user.get('contact_phone_number') or user.get('public_phone_number')}")

    if include_private_contact:
        if user.get("email"):
            lines += ["", f"Email: {user['email']}"]
        if user.get("phone_number"):
            lines.append(f"Phone Number: {user['phone_number']}")
    return "\n".join(lines)


def _post_lines(index: int, post: Data, *, fallback_author: str, show_author_id: bool) -> list[str]:
    author = post.get("user") or {}
    author_line = f"Author: @{author.get('username') or fallback_author}"
    if show_author_id:
        author_line += f" (ID: {_user_id(author)})"

    lines = [f"Post {index}:", f"Media ID: {post.get('id') or post.get('pk') or 'N/A'}", f"Type: {media_type(post)}"]
    lines += _url_lines(media_urls(post))
    caption = _preview(_caption(post))
    if caption:
        lines.append(f"Caption: {caption}")
    lines += [
        f"Likes: {number(post.get('like_count'))} | Comments: {number(post.get('comment_count'))}",
        f"Posted: {format_timestamp(post.get('taken_at'))}",
        author_line,
    ]
    if post.get("location"):
        lines.append(f"Location: {post['location'].get('name') or 'Unknown location'}")
    lines.append("")
    return lines


def format_user_posts(
    posts: list[Data],
    user_id: str,
    next_cursor: str | None,
    *,
    has_more: bool,
    username: str | None = None,
) -> str:
    if not posts:
        identifier = f"@{username}" if username else f"User ID {user_id}"
        return f"No posts found for {identifier}."

    display = username or (posts[0].get("user") or {}).get("username") or "unknown"
    lines = [f"Posts Feed for @{display} (User ID: {user_id}):", SEPARATOR, f"Showing {plural(len(posts), 'post')}", ""]
    for index, post in enumerate(posts, start=1):
        lines += _post_lines(index, post, fallback_author=display, show_author_id=False)
    lines.append(_pagination_line("posts", next_cursor, has_more=has_more))
    return "\n".join(lines)


def format_timeline(posts: list[Data], next_cursor: str | None, *, has_more: bool) -> str:
    if not posts:
        return (
            "No posts found in your timeline feed.\n\n"
            "This may happen if:\n"
            "• You don't follow any accounts yet\n"
            "• The accounts you follow haven't posted recently\n"
            "• Your feed is empty"
        )
    lines = ["Timeline Feed:", SEPARATOR, f"Showing {plural(len(posts), 'post')}", ""]
    for index, post in enumerate(posts, start=1):
        lines += _post_lines(index, post, fallback_author="unknown", show_author_id=True)
    lines.append(_pagination_line("posts", next_cursor, has_more=has_more))
    return "\n".join(lines)


def format_post_details(media: Data, media_id: str) -> str:
    author = media.get("user") or {}
    lines = [
        f"Post Details for Media ID: {media_id}",
        SEPARATOR,
        f"Author: @{author.get('username') or 'N/A'}",
        f"Author Name: {author.get('full_name') or 'N/A'}",
        f"Author ID: {_user_id(author)}",
        f"Author Profile Picture: {author.get('profile_pic_url') or 'N/A'}",
        "",
        f"Media Type: {media_type(media)}",
    ]
    width = media.get("original_width") or media.get("width")
    height = media.get("original_height") or media.get("height")
    if width and height:
        lines.append(f"Dimensions: {width} × {height} pixels")
    lines += _url_lines(media_urls(media))

    caption = _caption(media)
    if caption:
        lines += ["", "Caption:", caption]

    lines += [
        "",
        "Engagement Metrics:",
        f"• Likes: {number(media.get('like_count'))}",
        f"• Comments: {number(media.get('comment_count'))}",
    ]
    views = media.get("view_count") or media.get("play_count") or media.get("video_view_count")
    if views:
        lines.append(f"• Views: {number(views)}")

    location = media.get("location")
    if location:
        location_line = f"Location: {location.get('name') or 'Unknown location'}"
        if location.get("pk"):
            location_line += f" (ID: {location['pk']})"
        lines += ["", location_line]

    lines += ["", f"Posted: {format_timestamp(media.get('taken_at'))}"]

    extras = []
    if "#" in caption:
        extras.append("• Contains hashtags")
    if "@" in caption:
        extras.append("• Contains mentions")
    if extras:
        lines += ["", "Additional Info:", *extras]
    return "\n".join(lines)


def format_comments(comments: list[Data], media_id: str, next_cursor: str | None, *, has_more: bool) -> str:
    if not comments:
        return (
            f"No comments found for post with media ID: {media_id}.\n\n"
            "This may happen if:\n"
            "• The post has no comments yet\n"
            "• Comments are disabled on this post\n"
            "• The post is from a private account you don't have access to"
        )

    lines = [f"Comments for Post (Media ID: {media_id}):", SEPARATOR, f"Showing {plural(len(comments), 'comment')}", ""]
    for index, comment in enumerate(comments, start=1):
        author = comment.get("user") or {}
        author_line = f"Author: @{author.get('username') or 'unknown'} (ID: {_user_id(author)})"
        if author.get("full_name"):
            author_line += f" - {author['full_name']}"
        lines += [
            f"Comment {index}:",
            f"Comment ID: {comment.get('pk') or comment.get('id') or 'N/A'}",
            author_line,
            f"Text: {comment.get('text') or '(no text)'}",
            f"Likes: {number(comment.get('like_count') or comment.get('comment_like_count'))}",
            f"Posted: {format_timestamp(comment.get('created_at_utc') or comment.get('created_at'))}",
        ]
        parent = comment.get("replied_to_comment_id") or comment.get("parent_comment_id")
        if parent:
            lines.append(f"Reply to comment ID: {parent}")
        lines.append("")
    lines.append(_pagination_line("comments", next_cursor, has_more=has_more))
    return "\n".join(lines)


def _sticker_types(story: Data) -> list[str]:
    stickers = story.get("story_stickers") or story.get("stickers") or []
    found = []
    for sticker in stickers:
        found += [label for key, label in _STICKER_TYPES if sticker.get(key)]
    return found


def format_stories(stories: list[Data], user_id: str, username: str | None = None) -> str:
    if not stories:
        identifier = f"@{username}" if username else f"User ID {user_id}"
        return f"No active stories found for {identifier}.\n\nNote: Stories expire after 24 hours."

    display = username or (stories[0].get("user") or {}).get("username") or "unknown"
    lines = [
        f"Stories for @{display} (User ID: {user_id}):",
        SEPARATOR,
        f"Showing {len(stories)} active {'story' if len(stories) == 1 else 'stories'}",
        "⚠️ Note: Stories expire after 24 hours",
        "",
    ]
    for index, story in enumerate(stories, start=1):
        posted = parse_timestamp(story.get("taken_at"))
        expires = parse_timestamp(story.get("expiring_at")) or (posted + STORY_LIFETIME if posted else None)
        lines += [f"Story {index}:", f"Story ID: {story.get('id') or story.get('pk') or 'N/A'}", f"Type: {media_type(story)}"]
        lines += _url_lines(media_urls(story))
        lines += [f"Posted: {format_timestamp(posted)}", f"Expires: {format_timestamp(expires)}"]
        if story.get("video_duration"):
            lines.append(f"Duration: {story['video_duration']} seconds")
        viewers = story.get("viewer_count")
        if viewers is not None:
            lines.append(f"Viewers: {number(viewers)}")
        stickers = _sticker_types(story)
        if stickers:
            lines.append(f"Interactive Elements: {', '.join(stickers)}")
        lines.append("")
    return "\n".join(lines)


def format_search_results(users: list[Data], query: str, limit: int) -> str:
    shown = users[:limit]
    if not shown:
        return f'No accounts found matching "{query}"'

    summary = f'Found {plural(len(shown), "account")} matching "{query}"'
    if len(users) > limit:
        summary += f" (showing first {limit} of {len(users)} total)"
    lines = [summary + ":"]
    for rank, user in enumerate(shown, start=1):
        lines += [
            "",
            f"{rank}. @{user.get('username') or 'N/A'}" + (" ✓" if user.get("is_verified") else ""),
            f"   Full Name: {user.get('full_name') or 'N/A'}",
            f"   User ID: {_user_id(user)}",
            f"   {'🔒 Private Account' if user.get('is_private') else '🌐 Public Account'}",
            f"   Followers: {number(user.get('follower_count'))}",
        ]
    return "\n".join(lines)
