import tempfile
import unittest
from pathlib import Path

from session_relay.errors import SessionNotFoundError
from session_relay.services.session_resolver import resolve_session_file


class SessionResolverTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = Path(tmpdir.name)

    def _touch(self, project_dir: str, session_id: str) -> Path:
        path = self.root / project_dir / f"{session_id}.jsonl"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("", encoding="utf-8")
        return path

    def test_project_hint_is_checked_first(self) -> None:
        self._touch("Users-aaa-first", "abc")
        hinted = self._touch("Users-me-app", "abc")

        self.assertEqual(resolve_session_file("abc", "/Users/me/app", root_dir=self.root), hinted)

    def test_falls_back_to_scanning_when_hint_misses(self) -> None:
        expected = self._touch("Users-me-other", "abc")

        self.assertEqual(resolve_session_file("abc", "/Users/me/app", root_dir=self.root), expected)

    def test_scans_all_projects_without_hint(self) -> None:
        self._touch("Users-me-app", "other")
        expected = self._touch("home-dev-svc", "abc")

        self.assertEqual(resolve_session_file("abc", root_dir=self.root), expected)

    def test_first_project_in_name_order_wins(self) -> None:
        first = self._touch("a-project", "abc")
        self._touch("b-project", "abc")

        self.assertEqual(resolve_session_file("abc", root_dir=self.root), first)

    def test_missing_session_raises_not_found(self) -> None:
        self._touch("Users-me-app", "other")

        with self.assertRaises(SessionNotFoundError) as ctx:
            resolve_session_file("abc", root_dir=self.root)

        self.assertEqual(ctx.exception.session_id, "abc")
        self.assertIn("not found for session abc", str(ctx.exception))

    def test_missing_root_raises_not_found(self) -> None:
        with self.assertRaises(SessionNotFoundError):
            resolve_session_file("abc", root_dir=self.root / "missing")

    def test_path_like_session_ids_never_resolve(self) -> None:
        (self.root / "secret.jsonl").write_text("{}\n", encoding="utf-8")
        self._touch("Users-me-app", "abc")

        for session_id in ("", "..", "../secret", "Users-me-app/abc"):
            with self.subTest(session_id=session_id):
                with self.assertRaises(SessionNotFoundError):
                    resolve_session_file(session_id, root_dir=self.root)

    def test_project_hint_cannot_leave_the_projects_directory(self) -> None:
        projects = self.root / "projects"
        (projects / "Users-me-app").mkdir(parents=True)
        outside = self.root / "abc.jsonl"
        outside.write_text('{"uuid": "U0"}\n', encoding="utf-8")

        for hint in ("..", ".", "\\..", "x\x00y"):
            with self.subTest(hint=hint):
                with self.assertRaises(SessionNotFoundError):
                    resolve_session_file("abc", hint, root_dir=projects)

    def test_unsafe_hint_still_falls_back_to_scan(self) -> None:
        projects = self.root / "projects"
        (self.root / "abc.jsonl").write_text("", encoding="utf-8")
        inside = projects / "Users-me-app" / "abc.jsonl"
        inside.parent.mkdir(parents=True)
        inside.write_text("", encoding="utf-8")

        self.assertEqual(resolve_session_file("abc", "..", root_dir=projects), inside)


if __name__ == "__main__":
    unittest.main()
