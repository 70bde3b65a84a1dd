from unittest.mock import AsyncMock, MagicMock

import pytest

from autorender.extensions.vid import SearchResult, VidCog, format_result, search_video
from autorender.extensions.watch import (
    VideoStatus,
    WatchCog,
    fetch_latest_videos,
    fetch_random_video,
    format_latest,
)
from autorender.utils.errors import ApiRequestError

PUBLIC_URI = "https://autorender.example.com"
USER_ID = 84272932246810624

SEARCH_RESULT = {
    "comment": "",
    "cur_rank": 1,
    "date": "2024-01-01T00:00:00Z",
    "id": 1,
    "map": "Portal Gun",
    "map_id": 47458,
    "obsoleted": 0,
    "orig_rank": 1,
    "time": 6203,
    "user": "[nekz]",
    "user_id": "76561198049848090",
    "views": 3,
    "share_id": "abc123",
}


def make_interaction():
    interaction = MagicMock()
    interaction.user.id = USER_ID
    interaction.response.send_message = AsyncMock()
    interaction.edit_original_response = AsyncMock()
    return interaction


@pytest.fixture
def bot(api):
    bot = MagicMock()
    bot.base_api = api.base_api
    bot.public_uri = PUBLIC_URI
    return bot


class TestWatch:
    @pytest.mark.asyncio
    async def test_fetch_latest_videos(self, api):
        api.respond(
            f"/api/v1/videos/status/{USER_ID}",
            [
                {"video_id": "a", "title": "First", "errored": False, "rendering": True, "rendered": False},
                {"video_id": "b", "title": "Second", "errored": False, "rendering": False, "rendered": True},
            ],
        )

        videos = await fetch_latest_videos(api.base_api, USER_ID)

        assert videos == [
            VideoStatus("a", "First", rendering=True),
            VideoStatus("b", "Second", rendered=True),
        ]
        assert api.requests[0]["headers"]["User-Agent"] == "autorender-bot v1.0"

    @pytest.mark.asyncio
    async def test_fetch_latest_videos_failure(self, api):
        api.respond(f"/api/v1/videos/status/{USER_ID}", {"message": "oops"}, status=500)

        with pytest.raises(ApiRequestError) as exc_info:
            await fetch_latest_videos(api.base_api, USER_ID)

        assert exc_info.value.status == 500

    def test_format_latest(self):
        content = format_latest(
            [
                VideoStatus("a", "Broken", errored=True),
                VideoStatus("b", "Queued"),
                VideoStatus("c", "Done", rendered=True),
            ],
            PUBLIC_URI,
        )

        assert content.splitlines() == [
            "❌️ Broken",
            "<https://autorender.example.com/videos/a>",
            " Queued",
            "<https://autorender.example.com/videos/b>",
            "📺️ Done",
            "<https://autorender.example.com/videos/c>",
        ]
        assert format_latest([], PUBLIC_URI) == "📺️ Nothing to watch."

    @pytest.mark.asyncio
    async def test_fetch_random_video(self, api):
        api.respond("/api/v1/videos/random/1", [{"video_id": "xyz", "title": "Random"}])
        assert await fetch_random_video(api.base_api) == "xyz"

        api.respond("/api/v1/videos/random/1", [])
        assert await fetch_random_video(api.base_api) is None

    @pytest.mark.asyncio
    async def test_latest_command(self, api, bot):
        api.respond(
            f"/api/v1/videos/status/{USER_ID}",
            [{"video_id": "a", "title": "First", "rendered": True}],
        )
        cog = WatchCog(bot)
        interaction = make_interaction()

        await cog.latest.callback(cog, interaction)

        interaction.response.send_message.assert_awaited_once_with("⏳️ Loading videos...")
        interaction.edit_original_response.assert_awaited_once_with(
            content="📺️ First\n<https://autorender.example.com/videos/a>"
        )

    @pytest.mark.asyncio
    async def test_latest_command_failure(self, api, bot):
        cog = WatchCog(bot)
        interaction = make_interaction()

        await cog.latest.callback(cog, interaction)

        interaction.edit_original_response.assert_awaited_once_with(
            content="❌️ Failed to request rendered videos."
        )

    @pytest.mark.asyncio
    async def test_random_command(self, api, bot):
        api.respond("/api/v1/videos/random/1", [{"video_id": "xyz"}])
        cog = WatchCog(bot)
        interaction = make_interaction()

        await cog.random.callback(cog, interaction)

        interaction.edit_original_response.assert_awaited_once_with(
            content="https://autorender.example.com/videos/xyz"
        )

    @pytest.mark.asyncio
    async def test_random_command_without_videos(self, api, bot):
        api.respond("/api/v1/videos/random/1", [])
        cog = WatchCog(bot)
        interaction = make_interaction()

        await cog.random.callback(cog, interaction)

        interaction.edit_original_response.assert_awaited_once_with(
            content="❌️ Failed to request random video."
        )


class TestVid:
    @pytest.mark.asyncio
    async def test_search_video(self, api):
        api.respond("/api/v1/search", {"end": False, "results": [SEARCH_RESULT]})

        result = await search_video(api.base_api, "portal gun")

        assert result == SearchResult(
            share_id="abc123",
            map="Portal Gun",
            map_id=47458,
            time=6203,
            user="[nekz]",
            user_id="76561198049848090",
        )
        assert api.requests[0]["query"] == {"q": "portal gun"}

    @pytest.mark.asyncio
    async def test_search_without_results(self, api):
        api.respond("/api/v1/search", {"end": True, "results": []})
        assert await search_video(api.base_api, "nothing") is None

    def test_format_result(self):
        result = SearchResult("abc123", "Portal Gun", 47458, 6203, "[nekz]", "76561198049848090")

        assert format_result(result, PUBLIC_URI) == (
            "[Portal Gun](<https://board.portal2.sr/chamber/47458>) "
            "in [1:02.03](https://autorender.example.com/videos/abc123) "
            "by [nekz](<https://board.portal2.sr/profile/76561198049848090>)"
        )

    @pytest.mark.asyncio
    async def test_vid_command(self, api, bot):
        api.respond("/api/v1/search", {"end": False, "results": [SEARCH_RESULT]})
        cog = VidCog(bot)
        interaction = make_interaction()

        await cog.vid.callback(cog, interaction, "Portal Gun")

        interaction.response.send_message.assert_awaited_once_with("🔍️ Searching video...")
        assert api.requests[0]["query"] == {"q": "portal gun"}
        content = interaction.edit_original_response.await_args.kwargs["content"]
        assert content.startswith("[Portal Gun]")

    @pytest.mark.asyncio
    async def test_vid_command_not_found(self, api, bot):
        api.respond("/api/v1/search", {"end": True, "results": []})
        cog = VidCog(bot)
        interaction = make_interaction()

        await cog.vid.callback(cog, interaction, "nothing")

        interaction.edit_original_response.assert_awaited_once_with(content="❌️ Video not found.")

    @pytest.mark.asyncio
    async def test_vid_command_failure(self, api, bot):
        api.respond("/api/v1/search", "Internal Server Error", status=500)
        cog = VidCog(bot)
        interaction = make_interaction()

        await cog.vid.callback(cog, interaction, "portal gun")

        interaction.edit_original_response.assert_awaited_once_with(
            content="❌️ Failed to fetch videos."
        )
