from __future__ import annotations

import pytest

from storyloom.models import CharacterIntroductionEvent, HistoryPagination
from storyloom.services.generation import GenerationCancelled
from storyloom.services.story import StoryService

from helpers import ScriptedGenerator, action, assert_log_matches_history, narration


@pytest.fixture
def generator():
    return ScriptedGenerator()


@pytest.fixture
def service(store, generator):
    return StoryService(store, generator)


class TestEditAction:

    @pytest.mark.asyncio
    async def test_records_trimmed_edit(self, service):
        assert await service.edit_action(0, "  go east  ")
        history = service.state.event_history["0"]
        assert [e.event for e in history.entries] == [action("go north"), action("go east")]
        assert [e.kind for e in history.entries] == ["edit", "edit"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   ", "go north", " go north "])
    async def test_ignores_empty_or_unchanged(self, service, text):
        assert not await service.edit_action(0, text)
        assert service.state.event_history == {}

    @pytest.mark.asyncio
    async def test_ignores_non_action_events(self, service):
        assert not await service.edit_action(1, "rewritten")
        assert service.state.events[1] == narration("The road bends into fog.")

    @pytest.mark.asyncio
    async def test_replace_event_of_any_kind(self, service):
        await service.replace_event(1, narration("Rewritten by hand."))
        history = service.state.event_history["1"]
        assert history.entries[-1].kind == "edit"
        assert service.state.events[1] == narration("Rewritten by hand.")


class TestTurns:

    @pytest.mark.asyncio
    async def test_turn_appends_action_and_narration(self, service, store, generator):
        generator.results = [narration("Mira waves you over.")]
        await store.set(lambda s: s.actions.append("wait"))

        assert await service.take_turn("walk into the tavern")

        events = service.state.events
        assert events[-2:] == [action("walk into the tavern"), narration("Mira waves you over.")]
        assert service.state.actions == []
        # The narrator already sees the new action
        assert generator.seen_event_counts == [6]

    @pytest.mark.asyncio
    async def test_failed_turn_leaves_timeline_alone(self, service, generator):
        generator.error = TimeoutError("slow backend")
        with pytest.raises(TimeoutError):
            await service.take_turn("walk into the tavern")
        assert len(service.state.events) == 5

    @pytest.mark.asyncio
    async def test_cancelled_turn_leaves_timeline_alone(self, service, generator):
        generator.error = GenerationCancelled()
        assert not await service.take_turn("walk into the tavern")
        assert len(service.state.events) == 5

    @pytest.mark.asyncio
    async def test_empty_action_is_ignored(self, service, generator):
        assert not await service.take_turn("   ")
        assert generator.calls == []


class TestHistoryViewer:

    @pytest.mark.asyncio
    async def test_open_seeds_history_and_pagination(self, service):
        await service.open_history(2)
        assert service.has_history(2)
        assert service.state.history_pagination == HistoryPagination(
            event_index=2, page=0, page_size=5
        )

    @pytest.mark.asyncio
    async def test_open_for_missing_event_does_nothing(self, service):
        await service.open_history(42)
        assert service.state.history_pagination is None

    @pytest.mark.asyncio
    async def test_change_page_stays_in_range(self, service):
        for i in range(6):
            await service.replace_event(1, narration(f"v{i}"))
        await service.open_history(1, page_size=5)

        await service.change_history_page(1)
        assert service.state.history_pagination.page == 1
        await service.change_history_page(2)
        assert service.state.history_pagination.page == 1
        assert [e.event.text for e in service.history_page(1, 1)] == ["v4", "v5"]
        assert service.history_page_count(1) == 2

    @pytest.mark.asyncio
    async def test_deleting_last_entry_on_page_steps_back(self, service):
        for i in range(5):
            await service.replace_event(1, narration(f"v{i}"))
        await service.open_history(1, page_size=5)
        await service.change_history_page(1)

        await service.delete_version(1, 5)

        assert service.state.history_pagination.page == 0
        assert len(service.state.event_history["1"].entries) == 5
        assert_log_matches_history(service.state)

    @pytest.mark.asyncio
    async def test_close(self, service):
        await service.open_history(0)
        await service.close_history()
        assert service.state.history_pagination is None


class TestRestoreAndDelete:

    @pytest.mark.asyncio
    async def test_select_restores_older_version(self, service):
        await service.edit_action(2, "douse the torch")
        await service.select_version(2, 0)
        assert service.get_event(2) == action("light a torch")
        assert len(service.state.event_history["2"].entries) == 2

    @pytest.mark.asyncio
    async def test_delete_event_rekeys(self, service):
        await service.edit_action(4, "whisper")
        await service.delete_event(0)
        assert not service.has_history(4)
        assert service.has_history(3)
        assert service.get_event(3) == action("whisper")

    @pytest.mark.asyncio
    async def test_regenerate_and_cancel_delegate(self, service, generator):
        generator.results = [narration("A crow lands.")]
        assert await service.regenerate(1) == narration("A crow lands.")
        assert not service.cancel_regeneration(1)
        assert not service.is_regenerating(1)

    @pytest.mark.asyncio
    async def test_regenerating_introduction_surfaces_error(self, store):
        from storyloom.services.generation import LLMEventGenerator

        class NoLLM:
            pass

        await store.set(lambda s: s.events.append(CharacterIntroductionEvent(character_index=0)))
        service = StoryService(store, LLMEventGenerator(NoLLM()))
        with pytest.raises(ValueError):
            await service.regenerate(5)
        assert len(store.state.event_history["5"].entries) == 1
