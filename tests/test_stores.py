from __future__ import annotations

import pytest

from conftest import BUG, issue_node, viewer_payload
from ghdash.application.state import CACHE_TTL_SECONDS
from ghdash.domain.entities import (
    CollaboratorDraft,
    Issue,
    IssueDraft,
    IssueState,
    Label,
    LabelDraft,
    Project,
    ProjectDraft,
    RepositoryDraft,
)
from ghdash.domain.errors import TransportError, UnsupportedOperation
from ghdash.domain.interfaces import GraphQLResult
from ghdash.infrastructure import operations
from ghdash.infrastructure.mappers import map_viewer


def ok(data: dict) -> GraphQLResult:
    return GraphQLResult(data=data)


def failed(message: str = "boom", data: dict | None = None) -> GraphQLResult:
    return GraphQLResult(data=data, error=TransportError(message))


def project_node(project_id: str = "PVT_new", title: str = "Launch") -> dict:
    return {
        "id": project_id,
        "number": 7,
        "title": title,
        "shortDescription": None,
        "url": f"https://github.com/users/octocat/projects/{project_id}",
        "closed": False,
        "createdAt": "2024-05-01T00:00:00Z",
        "updatedAt": "2024-05-01T00:00:00Z",
        "owner": {"id": "U_1", "login": "octocat"},
        "creator": {"login": "octocat"},
    }


class TestFetchAll:

    async def test_fetch_populates_and_stamps(self, stores, executor):
        executor.queue(ok(viewer_payload()))

        repos = await stores.repositories.fetch_all()

        assert [r.id for r in repos] == ["R_1", "R_2"]
        assert executor.calls[0][0] == operations.GET_REPOSITORIES
        assert stores.repositories.is_cache_valid() is True
        assert stores.repositories.is_loading is False

    async def test_fresh_cache_skips_the_network(self, stores, executor):
        executor.queue(ok(viewer_payload()))
        await stores.repositories.fetch_all()

        again = await stores.repositories.fetch_all()

        assert len(executor.calls) == 1
        assert [r.id for r in again] == ["R_1", "R_2"]

    async def test_stale_cache_refetches(self, stores, executor, clock):
        executor.queue(ok(viewer_payload()), ok(viewer_payload()))
        await stores.repositories.fetch_all()

        clock.advance(CACHE_TTL_SECONDS + 1)
        await stores.repositories.fetch_all()

        assert len(executor.calls) == 2

    async def test_force_refresh_bypasses_fresh_cache(self, stores, executor):
        executor.queue(ok(viewer_payload()), ok(viewer_payload()))
        await stores.repositories.fetch_all()

        await stores.repositories.fetch_all(force_refresh=True)

        assert len(executor.calls) == 2

    async def test_failed_refresh_keeps_items_and_stamp(self, stores, executor, clock):
        executor.queue(ok(viewer_payload()), failed("offline"))
        await stores.repositories.fetch_all()
        stamped_at = stores.repositories.cache.last_fetched
        clock.advance(10)

        with pytest.raises(TransportError, match="offline"):
            await stores.repositories.fetch_all(force_refresh=True)

        assert [r.id for r in stores.repositories.get_all()] == ["R_1", "R_2"]
        assert stores.repositories.cache.last_fetched == stamped_at
        assert isinstance(stores.repositories.error, TransportError)
        assert stores.repositories.is_loading is False

    async def test_each_feature_reads_its_slice(self, stores, executor):
        executor.queue(*(ok(viewer_payload()) for _ in range(4)))

        users = await stores.users.fetch_all()
        issues = await stores.issues.fetch_all()
        labels = await stores.labels.fetch_all()
        collaborators = await stores.collaborators.fetch_all()

        assert [u.login for u in users] == ["octocat"]
        assert stores.users.viewer.login == "octocat"
        assert [i.id for i in issues] == ["I_1", "I_2", "PVTI_3"]
        assert issues[0].status == "Todo"
        assert [label.id for label in labels] == ["L_bug", "L_docs"]
        assert [(c.login, c.permission) for c in collaborators] == [("octocat", "ADMIN"), ("hubot", "WRITE")]

    async def test_missing_data_is_a_failure(self, stores, executor):
        executor.queue(GraphQLResult())
        with pytest.raises(TransportError, match="no data"):
            await stores.projects.fetch_all()
        assert stores.projects.get_all() == []


class TestProjectStore:

    async def test_create_appends_server_entity(self, stores, executor):
        executor.queue(ok({"createProjectV2": {"projectV2": project_node()}}))

        project = await stores.projects.create(ProjectDraft(owner_id="U_1", title="Launch", description="Q3"))

        assert project.id == "PVT_new"
        assert project.description == "Q3"
        assert stores.projects.get_by_id("PVT_new") == project
        assert executor.calls[0][1] == {"input": {"ownerId": "U_1", "title": "Launch"}}

    async def test_failed_create_leaves_collection_unchanged(self, stores, executor):
        stores.projects.set_items([Project(id="PVT_1", name="Roadmap")])
        executor.queue(failed("forbidden"))

        with pytest.raises(TransportError, match="forbidden"):
            await stores.projects.create(ProjectDraft(owner_id="U_1", title="Launch"))

        assert [p.id for p in stores.projects.get_all()] == ["PVT_1"]
        assert "forbidden" in str(stores.projects.error)
        assert stores.projects.is_loading is False

    async def test_partial_data_with_errors_is_a_failure(self, stores, executor):
        executor.queue(failed("partial", data={"createProjectV2": {"projectV2": project_node()}}))

        with pytest.raises(TransportError):
            await stores.projects.create(ProjectDraft(owner_id="U_1", title="Launch"))

        assert stores.projects.get_all() == []

    async def test_save_sends_remote_names_then_merges(self, stores, executor):
        stores.projects.set_items([Project(id="PVT_1", name="Roadmap")])
        executor.queue(ok({"updateProjectV2": {"projectV2": {"id": "PVT_1"}}}))

        updated = await stores.projects.save("PVT_1", name="Plan", description="Next quarter")

        assert updated.name == "Plan"
        assert updated.description == "Next quarter"
        assert executor.calls[0][1] == {
            "input": {"projectId": "PVT_1", "title": "Plan", "shortDescription": "Next quarter"},
        }

    async def test_save_rejects_unknown_fields_before_calling(self, stores, executor):
        stores.projects.set_items([Project(id="PVT_1", name="Roadmap")])
        with pytest.raises(ValueError):
            await stores.projects.save("PVT_1", number=3)
        assert executor.calls == []

    async def test_failed_save_keeps_local_copy(self, stores, executor):
        stores.projects.set_items([Project(id="PVT_1", name="Roadmap")])
        executor.queue(failed())

        with pytest.raises(TransportError):
            await stores.projects.save("PVT_1", name="Plan")

        assert stores.projects.get_by_id("PVT_1").name == "Roadmap"

    async def test_remove(self, stores, executor):
        stores.projects.set_items([Project(id="PVT_1", name="Roadmap"), Project(id="PVT_2", name="Bugs")])
        executor.queue(
            ok({"deleteProjectV2": {"projectV2": {"id": "PVT_1"}}}),
            ok({"deleteProjectV2": {"projectV2": None}}),
        )

        assert await stores.projects.remove("PVT_1") is True
        assert await stores.projects.remove("PVT_2") is False
        assert [p.id for p in stores.projects.get_all()] == ["PVT_2"]

    async def test_link_repository_once(self, stores, executor):
        stores.projects.set_items([Project(id="PVT_1", name="Roadmap")])
        linked = {"linkProjectV2ToRepository": {"repository": {"id": "R_1", "name": "demo",
                                                               "owner": {"login": "octocat"}}}}
        executor.queue(ok(linked), ok(linked))

        await stores.projects.link_repository("PVT_1", "R_1")
        project = await stores.projects.link_repository("PVT_1", "R_1")

        assert [(r.id, r.name, r.owner_login) for r in project.repositories] == [("R_1", "demo", "octocat")]


class TestRepositoryStore:

    async def test_create_validates_visibility_locally(self, stores, executor):
        with pytest.raises(ValueError):
            await stores.repositories.create(RepositoryDraft(name="x", visibility="secret"))
        assert executor.calls == []

    async def test_create_and_find(self, stores, executor):
        node = viewer_payload()["viewer"]["repositories"]["nodes"][0]
        executor.queue(ok({"createRepository": {"repository": node}}))

        repo = await stores.repositories.create(RepositoryDraft(name="demo", description="Demo", visibility="public"))

        assert executor.calls[0][1] == {"input": {"name": "demo", "visibility": "PUBLIC", "description": "Demo"}}
        assert stores.repositories.find("octocat", "demo") == repo
        assert stores.repositories.find("octocat", "other") is None

    async def test_remove_archives_then_drops(self, stores, executor):
        stores.repositories.set_items(map_viewer(viewer_payload()).repositories)
        executor.queue(ok({"archiveRepository": {"repository": {"id": "R_2", "isArchived": True}}}))

        assert await stores.repositories.remove("R_2") is True
        assert executor.calls[0][0] == operations.ARCHIVE_REPOSITORY
        assert [r.id for r in stores.repositories.get_all()] == ["R_1"]


class TestIssueStore:

    async def test_create_on_a_board(self, stores, executor):
        executor.queue(
            ok({"createIssue": {"issue": issue_node("I_9", "New bug", [BUG], 9)}}),
            ok({"addProjectV2ItemById": {"item": {"id": "PVTI_9"}}}),
        )

        issue = await stores.issues.create(IssueDraft(repository_id="R_1", title="New bug", project_id="PVT_1"))

        assert issue.project_item_id == "PVTI_9"
        assert stores.issues.get_by_id("I_9") == issue
        assert executor.calls[1][1] == {"input": {"projectId": "PVT_1", "contentId": "I_9"}}

    async def test_failed_board_step_stores_nothing(self, stores, executor):
        executor.queue(
            ok({"createIssue": {"issue": issue_node("I_9", "New bug")}}),
            failed("no access to project"),
        )

        with pytest.raises(TransportError, match="no access"):
            await stores.issues.create(IssueDraft(repository_id="R_1", title="New bug", project_id="PVT_1"))

        assert stores.issues.get_all() == []

    async def test_save_state(self, stores, executor):
        stores.issues.set_items([Issue(id="I_1", title="Fix login")])
        executor.queue(ok({"updateIssue": {"issue": {"id": "I_1"}}}))

        issue = await stores.issues.save("I_1", state="CLOSED")

        assert issue.state is IssueState.CLOSED
        assert executor.calls[0][1] == {"input": {"id": "I_1", "state": "CLOSED"}}

    async def test_move_updates_status(self, stores, executor):
        stores.issues.set_items(map_viewer(viewer_payload()).issues)
        executor.queue(ok({"updateProjectV2ItemFieldValue": {
            "projectV2Item": {"id": "PVTI_1", "fieldValueByName": {"name": "Done"}},
        }}))

        moved = await stores.issues.move("I_1", "PVT_1", "F_status", "O_done")

        assert moved.status == "Done"
        variables = executor.calls[0][1]["input"]
        assert variables["itemId"] == "PVTI_1"
        assert variables["value"] == {"singleSelectOptionId": "O_done"}

    async def test_move_without_board_item_is_a_noop(self, stores, executor):
        stores.issues.set_items([Issue(id="I_5", title="Loose")])
        assert await stores.issues.move("I_5", "PVT_1", "F_status", "O_1") is None
        assert await stores.issues.move("missing", "PVT_1", "F_status", "O_1") is None
        assert executor.calls == []

    async def test_create_draft_uses_the_project_item_id(self, stores, executor):
        executor.queue(ok({"addProjectV2DraftIssue": {"projectItem": {
            "id": "PVTI_d",
            "content": {"id": "DI_1", "title": "Sketch", "body": "later", "createdAt": "2024-05-01T00:00:00Z"},
        }}}))

        draft = await stores.issues.create_draft("PVT_1", "Sketch", "later")

        assert executor.calls[0][0] == operations.CREATE_DRAFT_ISSUE
        assert executor.calls[0][1] == {"input": {"projectId": "PVT_1", "title": "Sketch", "body": "later"}}
        assert (draft.id, draft.project_item_id, draft.is_draft) == ("PVTI_d", "PVTI_d", True)
        assert draft.body == "later"
        assert stores.issues.get_by_id("PVTI_d") == draft

    async def test_failed_draft_create_stores_nothing(self, stores, executor):
        executor.queue(failed("project closed"), ok({"addProjectV2DraftIssue": {"projectItem": None}}))

        with pytest.raises(TransportError, match="project closed"):
            await stores.issues.create_draft("PVT_1", "Sketch")
        with pytest.raises(TransportError, match="no project item"):
            await stores.issues.create_draft("PVT_1", "Sketch")

        assert stores.issues.get_all() == []

    async def test_drafts_cannot_be_saved_or_removed(self, stores, executor):
        stores.issues.set_items(map_viewer(viewer_payload()).issues)

        with pytest.raises(UnsupportedOperation):
            await stores.issues.save("PVTI_3", title="Renamed")
        with pytest.raises(UnsupportedOperation):
            await stores.issues.remove("PVTI_3")

        assert executor.calls == []
        assert stores.issues.get_by_id("PVTI_3").title == "Draft"

    async def test_search_by_number_and_label(self, stores):
        stores.issues.set_items(map_viewer(viewer_payload()).issues)
        assert [i.id for i in stores.issues.search()] == ["I_1", "I_2", "PVTI_3"]
        stores.issues.set_search_query("2")
        assert [i.id for i in stores.issues.search()] == ["I_2"]
        stores.issues.set_search_query("")
        stores.issues.set_filters({"labels": ["L_docs"]})
        assert [i.id for i in stores.issues.search()] == ["I_2"]
        stores.issues.set_filters({"state": "CLOSED"})
        assert stores.issues.search() == []
        stores.issues.set_filters({"state": ["OPEN", "CLOSED"], "labels": None})
        assert len(stores.issues.search()) == 3


class TestLabelStore:

    async def test_create_normalizes_color(self, stores, executor):
        executor.queue(ok({"createLabel": {"label": {"id": "L_new", "name": "triage", "color": "a2eeef"}}}))

        label = await stores.labels.create(LabelDraft(repository_id="R_1", name="triage", color="#A2EEEF"))

        assert executor.calls[0][1]["input"]["color"] == "a2eeef"
        assert executor.calls[0][1]["input"]["description"] == ""
        assert label == Label(id="L_new", name="triage", color="a2eeef")

    async def test_partial_create_is_not_stored(self, stores, executor):
        executor.queue(failed("partial", data={"createLabel": {"label": {"id": "L_new", "name": "x"}}}))

        with pytest.raises(TransportError):
            await stores.labels.create(LabelDraft(repository_id="R_1", name="x", color="fff"))

        assert stores.labels.get_all() == []

    async def test_save_and_remove(self, stores, executor):
        stores.labels.set_items([Label(id="L_1", name="bug", color="d73a4a")])
        executor.queue(ok({"updateLabel": {"label": {"id": "L_1"}}}), ok({"deleteLabel": {"clientMutationId": None}}))

        label = await stores.labels.save("L_1", color="#FF0000")
        assert label.color == "ff0000"

        assert await stores.labels.remove("L_1") is True
        assert stores.labels.get_all() == []


class TestCollaboratorStore:

    async def test_create_looks_up_the_user_then_grants_a_role(self, stores, executor):
        executor.queue(
            ok({"user": {"id": "U_3", "login": "monalisa", "avatarUrl": "m.png", "name": "Mona"}}),
            ok({"updateProjectV2Collaborators": {"collaborators": {"totalCount": 2}}}),
        )

        collaborator = await stores.collaborators.create(CollaboratorDraft(project_id="PVT_1", login="monalisa"))

        assert [call[0] for call in executor.calls] == [operations.GET_USER, operations.UPDATE_PROJECT_COLLABORATORS]
        assert executor.calls[0][1] == {"login": "monalisa"}
        assert executor.calls[1][1] == {
            "input": {"projectId": "PVT_1", "collaborators": [{"userId": "U_3", "role": "WRITER"}]},
        }
        assert (collaborator.id, collaborator.login, collaborator.permission) == ("U_3", "monalisa", "WRITE")
        assert stores.collaborators.get_by_id("U_3") == collaborator

    async def test_unknown_login_adds_nothing(self, stores, executor):
        executor.queue(ok({"user": None}))

        with pytest.raises(TransportError, match="no GitHub user 'ghost'"):
            await stores.collaborators.create(CollaboratorDraft(project_id="PVT_1", login="ghost"))

        assert len(executor.calls) == 1
        assert stores.collaborators.get_all() == []

    async def test_unknown_permission_is_rejected_before_calling(self, stores, executor):
        with pytest.raises(ValueError):
            await stores.collaborators.create(CollaboratorDraft(project_id="PVT_1", login="hubot", permission="OWNER"))
        assert executor.calls == []

    async def test_failed_grant_leaves_collection_unchanged(self, stores, executor):
        stores.collaborators.set_items(map_viewer(viewer_payload()).collaborators)
        executor.queue(
            ok({"user": {"id": "U_3", "login": "monalisa"}}),
            failed("must have admin rights"),
        )

        with pytest.raises(TransportError, match="admin rights"):
            await stores.collaborators.create(CollaboratorDraft(project_id="PVT_1", login="monalisa", permission="read"))

        assert [c.id for c in stores.collaborators.get_all()] == ["U_1", "U_2"]
        assert "admin rights" in str(stores.collaborators.error)

    async def test_remove_sets_the_none_role(self, stores, executor):
        stores.collaborators.set_items(map_viewer(viewer_payload()).collaborators)
        executor.queue(ok({"updateProjectV2Collaborators": {"collaborators": {"totalCount": 1}}}))

        assert await stores.collaborators.remove("PVT_1", "U_2") is True

        assert executor.calls[0][1]["input"]["collaborators"] == [{"userId": "U_2", "role": "NONE"}]
        assert [c.id for c in stores.collaborators.get_all()] == ["U_1"]

    async def test_failed_remove_keeps_the_collaborator(self, stores, executor):
        stores.collaborators.set_items(map_viewer(viewer_payload()).collaborators)
        executor.queue(ok({"updateProjectV2Collaborators": None}))

        with pytest.raises(TransportError, match="Failed to remove collaborator"):
            await stores.collaborators.remove("PVT_1", "U_2")

        assert [c.id for c in stores.collaborators.get_all()] == ["U_1", "U_2"]


async def test_users_are_read_only(stores):
    with pytest.raises(UnsupportedOperation):
        await stores.users.create(None)


async def test_reset_returns_store_to_fresh_state(stores, executor):
    executor.queue(ok(viewer_payload()), failed())
    await stores.projects.fetch_all()
    stores.projects.set_search_query("road")
    with pytest.raises(TransportError):
        await stores.projects.fetch_all(force_refresh=True)

    stores.reset()

    assert stores.projects.get_all() == []
    assert stores.projects.is_cache_valid() is False
    assert stores.projects.error is None
    assert stores.projects.search_state.query == ""


def test_store_changes_notify_subscribers(stores):
    seen = []
    unsubscribe = stores.labels.subscribe(seen.append)

    stores.labels.set_items([Label(id="L_1", name="bug")])
    stores.labels.update("L_1", name="defect")
    unsubscribe()
    stores.labels.delete("L_1")

    assert seen == [stores.labels, stores.labels]


def test_by_name_lookup(stores):
    assert stores.by_name("issues") is stores.issues
    with pytest.raises(KeyError):
        stores.by_name("gists")


def test_listener_may_edit_its_own_store(stores):
    stores.labels.set_items([Label(id="L_1", name="bug"), Label(id="L_2", name="docs")])
    seen = []

    def rename_then_prune(store):
        seen.append([label.name for label in store.get_all()])
        if store.get_by_id("L_1").name == "bug":
            store.update("L_1", name="defect")
        elif store.get_by_id("L_2") is not None:
            store.delete("L_2")

    stores.labels.subscribe(rename_then_prune)
    stores.labels.update("L_1", color="ff0000")

    assert [(label.id, label.name, label.color) for label in stores.labels.get_all()] == [("L_1", "defect", "ff0000")]
    assert seen[0] == ["bug", "docs"]
    assert seen[-1] == ["defect"]


def test_raising_listener_does_not_stop_the_change(stores):
    seen = []

    def explode(_store):
        raise RuntimeError("listener bug")

    stores.labels.subscribe(explode)
    stores.labels.subscribe(seen.append)

    stores.labels.set_items([Label(id="L_1", name="bug")])

    assert [label.id for label in stores.labels.get_all()] == ["L_1"]
    assert seen == [stores.labels]
