import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi import BackgroundTasks, HTTPException

from session_relay.models import SendMessageRequest
from session_relay.routers import api as api_router


class _RootMixin:
    def _make_root(self) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        root = Path(tmpdir.name) / "projects"
        root.mkdir()
        patcher = patch.object(api_router.config, "PROJECTS_DIR", root)
        patcher.start()
        self.addCleanup(patcher.stop)
        return root

    def _log(self, root: Path, project_dir: str, session_id: str, records: list) -> Path:
        path = root / project_dir / f"{session_id}.jsonl"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join((r if isinstance(r, str) else json.dumps(r)) + "\n" for r in records), encoding="utf-8")
        return path


class SessionsRouterTests(_RootMixin, unittest.IsolatedAsyncioTestCase):
    async def test_lists_sessions_from_projects_dir(self) -> None:
        root = self._make_root()
        self._log(root, "Users-me-app", "abc", [{"uuid": "U1", "message": {"role": "user", "content": "hi"}}])

        response = await api_router.get_sessions()

        self.assertEqual([s.sessionId for s in response.sessions], ["abc"])
        self.assertEqual(response.sessions[0].lastMessage, "hi")

    async def test_scan_failure_becomes_500(self) -> None:
        self._make_root()
        with patch.object(api_router, "list_sessions", side_effect=RuntimeError("disk on fire")):
            with self.assertRaises(HTTPException) as ctx:
                await api_router.get_sessions()

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.detail, "disk on fire")


class SendMessageRouterTests(_RootMixin, unittest.IsolatedAsyncioTestCase):
    async def test_missing_fields_are_rejected(self) -> None:
        self._make_root()
        for payload in (SendMessageRequest(message="hi"), SendMessageRequest(sessionId="abc"), SendMessageRequest(sessionId="abc", message="")):
            with self.subTest(payload=payload):
                with self.assertRaises(HTTPException) as ctx:
                    await api_router.send_message(payload, BackgroundTasks())
                self.assertEqual(ctx.exception.status_code, 400)
                self.assertEqual(ctx.exception.detail, "sessionId and message are required")

    async def test_appends_and_queues_notification(self) -> None:
        root = self._make_root()
        path = self._log(root, "Users-me-app", "abc", [{"uuid": "U1"}])
        tasks = BackgroundTasks()

        result = await api_router.send_message(
            SendMessageRequest(sessionId="abc", message="hi", projectPath="/Users/me/app"), tasks
        )

        self.assertTrue(result.success)
        self.assertEqual(len(path.read_text(encoding="utf-8").splitlines()), 2)
        self.assertEqual(len(tasks.tasks), 1)
        self.assertIs(tasks.tasks[0].func, api_router.dispatch_notification)
        self.assertEqual(tasks.tasks[0].args, ("hi",))

    async def test_unknown_session_is_500_and_not_notified(self) -> None:
        self._make_root()
        tasks = BackgroundTasks()

        with self.assertRaises(HTTPException) as ctx:
            await api_router.send_message(SendMessageRequest(sessionId="abc", message="hi"), tasks)

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertIn("not found for session abc", ctx.exception.detail)
        self.assertEqual(tasks.tasks, [])

    async def test_append_io_error_is_500(self) -> None:
        root = self._make_root()
        self._log(root, "Users-me-app", "abc", [{"uuid": "U1"}])

        with patch("session_relay.services.message_append.append_durable", side_effect=OSError("read-only file system")):
            with self.assertRaises(HTTPException) as ctx:
                await api_router.send_message(SendMessageRequest(sessionId="abc", message="hi"), BackgroundTasks())

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertIn("read-only", ctx.exception.detail)


class ConversationRouterTests(_RootMixin, unittest.IsolatedAsyncioTestCase):
    async def test_returns_records_with_their_logged_keys(self) -> None:
        root = self._make_root()
        self._log(
            root,
            "Users-me-app",
            "abc",
            [{"uuid": "U1", "type": "user", "requestId": "r1"}, "garbage", {"uuid": "U2", "type": "assistant"}],
        )

        response = await api_router.get_conversation("abc")

        self.assertEqual(
            response.conversation,
            [{"uuid": "U1", "type": "user", "requestId": "r1"}, {"uuid": "U2", "type": "assistant"}],
        )

    async def test_unknown_session_is_500(self) -> None:
        self._make_root()

        with self.assertRaises(HTTPException) as ctx:
            await api_router.get_conversation("missing")

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.detail, "Conversation not found for session missing")


if __name__ == "__main__":
    unittest.main()
