import asyncio

from notesync.core.exceptions import NotesTransportError
from notesync.core.models import EditorMode, EditorSession, MutationStatus, NotificationLevel, PageQuery

from conftest import drain, spin


def test_create_with_empty_title_never_reaches_the_service(stack_factory):
    async def scenario():
        s = stack_factory(count=3)
        await s.pagination.refresh()
        s.repo.calls.clear()
        editor = EditorSession(mode=EditorMode.CREATE, draft={"title": "", "content": "x"})

        result = await s.mutations.create(editor.draft, editor=editor)

        assert result.status is MutationStatus.INVALID
        assert result.field_errors == {"title": ["Title is required"]}
        assert editor.is_open
        assert editor.field_errors == {"title": ["Title is required"]}
        assert s.repo.calls == []
        assert not s.cache.view(PageQuery(1)).is_stale
        assert s.notifications.received == []
        assert not s.progress.active

    asyncio.run(scenario())


def test_created_note_appears_once_after_refetch(stack_factory):
    async def scenario():
        s = stack_factory(count=3)
        await s.pagination.refresh()
        editor = EditorSession(mode=EditorMode.CREATE)

        result = await s.mutations.create({"title": "A", "content": "B"}, editor=editor)
        assert result.ok
        assert result.note.title == "A"
        assert not editor.is_open
        assert editor.draft == {}
        assert s.repo.calls_for("create") == [({"title": "A", "content": "B", "is_published": False},)]
        assert s.notifications.messages == ["Note created successfully"]
        assert s.notifications.received[0].level is NotificationLevel.SUCCESS

        view = await s.pagination.refresh()
        assert [n.id for n in view.notes].count(result.note.id) == 1
        assert view.total_count == 4
        assert not s.progress.active

    asyncio.run(scenario())


def test_deleted_note_disappears_after_refetch(stack_factory):
    async def scenario():
        s = stack_factory(count=3)
        await s.pagination.refresh()

        result = await s.mutations.delete("note-2")
        assert result.status is MutationStatus.SUCCESS
        assert s.notifications.messages == ["Note deleted successfully"]

        view = await s.pagination.refresh()
        assert "note-2" not in [n.id for n in view.notes]
        assert view.total_count == 2

    asyncio.run(scenario())


def test_update_partial_payload(stack_factory):
    async def scenario():
        s = stack_factory(count=3)
        result = await s.mutations.update("note-1", {"is_published": True})
        assert result.ok
        assert result.note.is_published
        assert result.note.title == "Note 1"
        assert s.repo.calls_for("update") == [("note-1", {"is_published": True})]

    asyncio.run(scenario())


def test_failed_update_notifies_once_and_leaves_cache_untouched(stack_factory):
    async def scenario():
        s = stack_factory(count=3)
        before = await s.pagination.refresh()
        s.repo.calls.clear()
        editor = EditorSession(mode=EditorMode.UPDATE, note_id="missing")

        result = await s.mutations.update("missing", {"title": "T"}, editor=editor)
        await drain()

        assert result.status is MutationStatus.FAILED
        assert result.error.status_code == 404
        assert s.notifications.messages == ["Note not found"]
        assert s.notifications.received[0].level is NotificationLevel.ERROR
        assert not editor.is_open
        assert s.repo.calls_for("list") == []
        after = s.pagination.view()
        assert after.notes == before.notes
        assert not after.is_stale
        assert not s.progress.active

    asyncio.run(scenario())


def test_transport_failure_uses_generic_message(stack_factory):
    async def scenario():
        s = stack_factory(count=3)
        s.repo.fail_next("delete", NotesTransportError())
        result = await s.mutations.delete("note-1")
        assert result.status is MutationStatus.FAILED
        assert s.notifications.messages == ["Unable to reach the notes service"]
        assert len(s.repo.notes) == 3

    asyncio.run(scenario())


def test_duplicate_submit_is_ignored_while_pending(stack_factory):
    async def scenario():
        s = stack_factory(count=1)
        s.repo.block("create")
        form = {"title": "A", "content": "B"}
        first = asyncio.create_task(s.mutations.create(form))
        await spin()

        assert s.mutations.is_pending("create")
        assert s.progress.active
        second = await s.mutations.create(form)
        assert second.status is MutationStatus.IGNORED

        s.repo.release("create")
        assert (await first).ok
        assert len(s.repo.calls_for("create")) == 1
        assert not s.mutations.is_pending("create")

    asyncio.run(scenario())


def test_different_notes_can_be_deleted_concurrently(stack_factory):
    async def scenario():
        s = stack_factory(count=3)
        results = await asyncio.gather(s.mutations.delete("note-1"), s.mutations.delete("note-3"))
        assert all(r.ok for r in results)
        assert [n.id for n in s.repo.notes] == ["note-2"]

    asyncio.run(scenario())


def test_progress_indicator_toggles_once_per_operation(stack_factory):
    async def scenario():
        s = stack_factory(count=2)
        changes = []
        s.progress.listeners.append(changes.append)

        await s.mutations.delete("note-1")
        s.repo.fail_next("delete", NotesTransportError())
        await s.mutations.delete("note-2")
        await s.mutations.create({"title": ""})

        assert changes == [True, False, True, False, True, False]

    asyncio.run(scenario())


def test_blank_note_id_is_rejected(stack_factory):
    async def scenario():
        s = stack_factory(count=1)
        result = await s.mutations.delete("  ")
        assert result.status is MutationStatus.INVALID
        assert result.field_errors == {"id": ["Note id is required"]}
        assert s.repo.calls == []

    asyncio.run(scenario())


def test_created_note_appears_when_revalidation_was_already_in_flight(stack_factory):
    async def scenario():
        s = stack_factory(count=3)
        await s.pagination.refresh()
        s.clock.advance(10)
        s.repo.block("list")
        await s.pagination.refresh()
        await spin()
        assert len(s.repo.calls_for("list")) == 2

        result = await s.mutations.create({"title": "New", "content": "Body"})
        assert result.ok
        s.repo.release("list")
        page = await s.cache.fetch_page(1)

        assert "New" in [n.title for n in page.notes]
        assert page.total_count == 4
        assert s.pagination.view().total_count == 4

    asyncio.run(scenario())
