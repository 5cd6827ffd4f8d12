"""
Tests for Studio API routes.

Files, tree, git, terminal and the Studio AI endpoints.
"""

import uuid

import pytest

from drslab.config import settings
from drslab.exceptions import AIServiceError
from drslab.studio.project import GeneratedFile, GeneratedProject, NextStep


@pytest.fixture
def seeded(api_client):
    """Create a few files through the API and commit them."""
    for path, content in [
        ("index.html", "<h1>Hello</h1>\n"),
        ("src/App.tsx", "export const App = () => null;\n"),
    ]:
        api_client.post("/api/studio/files", json={"path": path, "content": content})
    api_client.post("/api/studio/git/commit", json={"message": "Initial", "stage_all": True})
    return api_client


class TestFiles:
    def test_create_detects_language(self, api_client):
        response = api_client.post(
            "/api/studio/files", json={"path": "/src/main.py", "content": "print(1)"}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["path"] == "src/main.py"
        assert data["language"] == "python"
        assert data["user_id"] == "test-user"

    def test_create_conflict(self, seeded):
        response = seeded.post("/api/studio/files", json={"path": "index.html"})

        assert response.status_code == 409

    def test_create_invalid_path(self, api_client):
        response = api_client.post("/api/studio/files", json={"path": "///"})

        assert response.status_code == 400

    def test_list_sorted_by_path(self, seeded):
        data = seeded.get("/api/studio/files").json()

        assert [f["path"] for f in data] == ["index.html", "src/App.tsx"]

    def test_files_scoped_to_user(self, seeded):
        response = seeded.get("/api/studio/files", headers={"X-User-Id": "other"})

        assert response.json() == []

    def test_get_update_delete(self, seeded):
        file_id = seeded.get("/api/studio/files").json()[0]["id"]

        assert seeded.get(f"/api/studio/files/{file_id}").json()["path"] == "index.html"

        updated = seeded.patch(
            f"/api/studio/files/{file_id}", json={"content": "<h1>Bye</h1>\n"}
        ).json()
        assert updated["content"] == "<h1>Bye</h1>\n"
        assert updated["path"] == "index.html"

        assert seeded.delete(f"/api/studio/files/{file_id}").json() == {"success": True}
        assert seeded.get(f"/api/studio/files/{file_id}").status_code == 404

    def test_rename_via_patch_conflict(self, seeded):
        file_id = seeded.get("/api/studio/files").json()[0]["id"]

        response = seeded.patch(
            f"/api/studio/files/{file_id}", json={"path": "src/App.tsx"}
        )

        assert response.status_code == 409

    def test_unknown_file_id(self, api_client):
        missing = uuid.uuid4()

        assert api_client.get(f"/api/studio/files/{missing}").status_code == 404
        assert api_client.patch(f"/api/studio/files/{missing}", json={}).status_code == 404
        assert api_client.delete(f"/api/studio/files/{missing}").status_code == 404

    def test_move_folder(self, seeded):
        response = seeded.post(
            "/api/studio/files/move", json={"old_path": "src", "new_path": "app"}
        )

        assert response.status_code == 200
        assert [f["path"] for f in response.json()] == ["app/App.tsx"]

    def test_move_errors(self, seeded):
        missing = seeded.post(
            "/api/studio/files/move", json={"old_path": "nope", "new_path": "yes"}
        )
        conflict = seeded.post(
            "/api/studio/files/move",
            json={"old_path": "src/App.tsx", "new_path": "index.html"},
        )

        assert missing.status_code == 404
        assert conflict.status_code == 409

    def test_tree(self, seeded):
        tree = seeded.get("/api/studio/tree").json()

        assert [(n["name"], n["type"]) for n in tree] == [
            ("src", "folder"),
            ("index.html", "file"),
        ]
        assert tree[0]["children"][0]["path"] == "src/App.tsx"


class TestGit:
    def test_status_after_commit_is_clean(self, seeded):
        data = seeded.get("/api/studio/git/status").json()

        assert data["changes"] == {}
        assert data["staged"] == []

    def test_stage_and_commit(self, seeded):
        seeded.post("/api/studio/files", json={"path": "README.md", "content": "# Demo"})

        status = seeded.post("/api/studio/git/stage", json={"path": "README.md"}).json()
        assert status["staged"] == ["README.md"]
        assert status["changes"] == {"README.md": "untracked"}

        response = seeded.post("/api/studio/git/commit", json={"message": "Add readme"})
        assert response.status_code == 201
        assert response.json()["paths"] == ["README.md"]

        log = seeded.get("/api/studio/git/log").json()
        assert [c["message"] for c in log][0] == "Add readme"

    def test_unstage(self, seeded):
        seeded.post("/api/studio/files", json={"path": "a.js"})
        seeded.post("/api/studio/git/stage", json={"all": True})

        status = seeded.post("/api/studio/git/unstage", json={"all": True}).json()

        assert status["staged"] == []

    def test_stage_requires_path_or_all(self, api_client):
        assert api_client.post("/api/studio/git/stage", json={}).status_code == 400
        assert api_client.post("/api/studio/git/unstage", json={}).status_code == 400

    def test_stage_unknown_path(self, api_client):
        response = api_client.post("/api/studio/git/stage", json={"path": "ghost.js"})

        assert response.status_code == 404

    def test_commit_nothing_staged(self, seeded):
        response = seeded.post("/api/studio/git/commit", json={"message": "noop"})

        assert response.status_code == 400

    def test_diff(self, seeded):
        file_id = seeded.get("/api/studio/files").json()[0]["id"]
        seeded.patch(f"/api/studio/files/{file_id}", json={"content": "<h1>Bye</h1>\n"})

        data = seeded.get("/api/studio/git/diff", params={"path": "index.html"}).json()

        assert data["path"] == "index.html"
        assert {"type": "del", "line": "<h1>Hello</h1>"} in data["lines"]
        assert {"type": "add", "line": "<h1>Bye</h1>"} in data["lines"]


class TestTerminal:
    def test_run_and_history(self, seeded):
        first = seeded.post("/api/studio/terminal", json={"command": "cd src"})
        second = seeded.post("/api/studio/terminal", json={"command": "ls"})

        assert first.status_code == 201
        assert first.json()["cwd"] == "/src/"
        assert second.json()["output"] == "App.tsx"
        assert second.json()["exit_code"] == 0

        history = seeded.get("/api/studio/terminal").json()
        assert [c["command"] for c in history] == ["ls", "cd src"]

    def test_unknown_command_uses_simulation(self, api_client, fake_ai):
        response = api_client.post("/api/studio/terminal", json={"command": "node -v"})

        assert response.json()["output"] == "simulated output"
        fake_ai.simulate_command.assert_called_once_with("node -v")

    def test_empty_command_rejected(self, api_client):
        assert api_client.post("/api/studio/terminal", json={"command": ""}).status_code == 422


class TestAIAssist:
    def test_assistant_mode(self, seeded, fake_ai):
        response = seeded.post(
            "/api/studio/ai-assist",
            json={
                "messages": [
                    {"role": "user", "content": "What is this?"},
                    {"role": "model", "content": "A demo."},
                    {"role": "user", "content": "Explain App.tsx"},
                ]
            },
        )

        assert response.status_code == 200
        assert response.json() == {"response": "Dev reply", "actions": []}
        history = fake_ai.generate_dev_response.call_args.args[0]
        assert [m["role"] for m in history] == ["user", "assistant", "user"]
        system_prompt = fake_ai.generate_dev_response.call_args.kwargs["system_prompt"]
        assert "Current project files: index.html, src/App.tsx" in system_prompt

    def test_custom_system_prompt_and_files(self, api_client, fake_ai):
        api_client.post(
            "/api/studio/ai-assist",
            json={
                "messages": [{"role": "user", "content": "hi"}],
                "context": {"systemPrompt": "Be brief.", "files": ["a.js"]},
            },
        )

        system_prompt = fake_ai.generate_dev_response.call_args.kwargs["system_prompt"]
        assert system_prompt == "Be brief.\n\nCurrent project files: a.js"

    def test_agent_mode_applies_commands(self, seeded, fake_ai):
        fake_ai.generate_dev_response.return_value = (
            '[COMMAND:CREATE_FILE:{"path": "src/util.js", "content": "export {}"}] '
            '[COMMAND:COMMIT:{"message": "Add util", "stageAll": true}] '
            "Added a util module."
        )

        response = seeded.post(
            "/api/studio/ai-assist",
            json={
                "messages": [{"role": "user", "content": "add a util"}],
                "context": {"mode": "agent"},
            },
        )

        data = response.json()
        assert data["response"] == "Added a util module."
        assert [(a["action"], a["status"]) for a in data["actions"]] == [
            ("CREATE_FILE", "applied"),
            ("COMMIT", "applied"),
        ]
        paths = [f["path"] for f in seeded.get("/api/studio/files").json()]
        assert "src/util.js" in paths
        assert seeded.get("/api/studio/git/status").json()["changes"] == {}

    def test_ai_failure(self, api_client, fake_ai):
        fake_ai.generate_dev_response.side_effect = AIServiceError("quota exceeded")

        response = api_client.post(
            "/api/studio/ai-assist", json={"messages": [{"role": "user", "content": "hi"}]}
        )

        assert response.status_code == 502

    def test_requires_messages(self, api_client):
        response = api_client.post("/api/studio/ai-assist", json={"messages": []})

        assert response.status_code == 422


class TestGenerateProject:
    def test_replaces_workspace(self, seeded, fake_ai):
        fake_ai.generate_project.return_value = GeneratedProject(
            project_name="todo-app",
            files=[
                GeneratedFile(path="index.html", language="html", content="<ul></ul>"),
                GeneratedFile(path="app.js", language="javascript", content="//"),
            ],
            explanation="A todo list.",
            next_steps=[NextStep(text="Add storage", priority="High")],
        )

        response = seeded.post("/api/studio/generate-project", json={"prompt": "todo app"})

        assert response.status_code == 200
        data = response.json()
        assert data["project_name"] == "todo-app"
        assert data["next_steps"] == [{"text": "Add storage", "priority": "High"}]
        assert sorted(f["path"] for f in data["files"]) == ["app.js", "index.html"]
        fake_ai.generate_project.assert_called_once_with(
            "todo app", ["index.html", "src/App.tsx"]
        )

        files = seeded.get("/api/studio/files").json()
        assert [f["path"] for f in files] == ["app.js", "index.html"]
        assert seeded.get("/api/studio/git/status").json()["changes"] == {}

    def test_ai_failure_leaves_workspace(self, seeded, fake_ai):
        fake_ai.generate_project.side_effect = AIServiceError("bad JSON")

        response = seeded.post("/api/studio/generate-project", json={"prompt": "x"})

        assert response.status_code == 502
        assert len(seeded.get("/api/studio/files").json()) == 2


class TestPathCollisions:
    def test_file_over_existing_folder(self, seeded):
        response = seeded.post("/api/studio/files", json={"path": "src"})

        assert response.status_code == 409
        assert seeded.get("/api/studio/tree").status_code == 200

    def test_file_below_existing_file(self, seeded):
        response = seeded.post("/api/studio/files", json={"path": "index.html/app.js"})

        assert response.status_code == 409

    def test_rename_onto_folder(self, seeded):
        file_id = seeded.get("/api/studio/files").json()[0]["id"]

        response = seeded.patch(f"/api/studio/files/{file_id}", json={"path": "src"})

        assert response.status_code == 409

    def test_agent_write_over_folder_fails(self, seeded, fake_ai):
        fake_ai.generate_dev_response.return_value = (
            '[COMMAND:WRITE_FILE:{"path": "src", "content": "x"}] Done.'
        )

        data = seeded.post(
            "/api/studio/ai-assist",
            json={
                "messages": [{"role": "user", "content": "write src"}],
                "context": {"mode": "agent"},
            },
        ).json()

        assert data["actions"][0]["status"] == "failed"
        assert seeded.get("/api/studio/tree").status_code == 200

    def test_generated_project_with_colliding_paths(self, seeded, fake_ai):
        fake_ai.generate_project.return_value = GeneratedProject(
            project_name="broken",
            files=[
                GeneratedFile(path="lib", content="x"),
                GeneratedFile(path="lib/util.js", content="y"),
            ],
        )

        response = seeded.post("/api/studio/generate-project", json={"prompt": "x"})

        assert response.status_code == 502
        assert len(seeded.get("/api/studio/files").json()) == 2


def test_terminal_history_capped(api_client):
    total = settings.terminal_history_limit + 2
    for i in range(total):
        api_client.post("/api/studio/terminal", json={"command": f"echo {i}"})

    history = api_client.get("/api/studio/terminal").json()

    assert len(history) == settings.terminal_history_limit
    assert history[0]["command"] == f"echo {total - 1}"
    assert "echo 0" not in [c["command"] for c in history]
