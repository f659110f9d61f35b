"""
Tests for Session.

Tests cover:
- Directory provisioning and stale-state removal
- The flat host-facing API (secrets and stash through the session)
- Close semantics, idempotence and cleanup failures
- Context manager behaviour on normal and failing exits
"""
import os
import stat
import pytest

from automation_session.exceptions import (
    CleanupFailed,
    SecretNotFound,
    SessionClosed,
    SessionError,
    StashNotFound,
)
from automation_session.vault import session as session_module
from automation_session.vault.config import SessionConfig
from automation_session.vault.models import SSHPrivateKeyView, TextView, UserPasswordView
from automation_session.vault.session import Session, SessionState


@pytest.fixture
def config(tmp_path):
    return SessionConfig(root_dir=tmp_path / ".automation")


@pytest.fixture
def session(config):
    """Create a Session and make sure its tree is gone afterwards."""
    s = Session(config)
    yield s
    s.close()


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "artifact.txt"
    path.write_text("artifact")
    return path


# --- Test Construction ---

class TestConstruction:
    """Tests for session startup."""

    def test_state_ready(self, session):
        """Test a new session is READY."""
        assert session.state is SessionState.READY
        assert session.closed is False

    def test_directories_created(self, session, config):
        """Test stash and secrets directories exist with owner-only mode."""
        for path in (config.root_dir, config.stash_dir, config.secrets_dir):
            assert path.is_dir()
            assert stat.S_IMODE(os.stat(path).st_mode) == 0o700
        assert session.stash_dir == config.root_dir / "stash"
        assert session.secrets_dir == config.root_dir / "secrets"

    def test_root_is_absolute(self, tmp_path, monkeypatch):
        """Test a relative root is made absolute."""
        monkeypatch.chdir(tmp_path)
        with Session(SessionConfig(root_dir=".automation")) as s:
            assert s.root.is_absolute()
            assert s.root == tmp_path / ".automation"

    def test_stale_tree_removed(self, config):
        """Test leftovers of a previous run are wiped."""
        (config.stash_dir).mkdir(parents=True)
        (config.stash_dir / "old-handle").write_text("old")
        (config.secrets_dir).mkdir(parents=True)
        (config.secrets_dir / "old-key").write_text("key")
        (config.root_dir / "junk").write_text("junk")

        with Session(config) as s:
            assert list(s.stash_dir.iterdir()) == []
            assert list(s.secrets_dir.iterdir()) == []
            assert not (config.root_dir / "junk").exists()

    def test_crashed_session_not_visible(self, config, source):
        """Test a session abandoned without close leaks nothing."""
        crashed = Session(config)
        crashed.add_text("token", "value")
        crashed.add_ssh_private_key("deploy", "git", "KEY")
        crashed.get_secret("deploy")
        handle = crashed.save(source)

        with Session(config) as fresh:
            with pytest.raises(SecretNotFound):
                fresh.get_secret("token")
            with pytest.raises(StashNotFound):
                fresh.load(handle)
            assert not (fresh.secrets_dir / "deploy").exists()

    def test_unique_session_ids(self, tmp_path):
        """Test each session gets its own id."""
        a = Session(SessionConfig(root_dir=tmp_path / "a"))
        b = Session(SessionConfig(root_dir=tmp_path / "b"))
        try:
            assert a.session_id != b.session_id
        finally:
            a.close()
            b.close()

    def test_provision_failure_is_fatal(self, tmp_path, monkeypatch):
        """Test a directory creation error raises SessionError."""
        def fail(path, mode):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(session_module, "make_private_dir", fail)
        with pytest.raises(SessionError):
            Session(SessionConfig(root_dir=tmp_path / "root"))

    def test_from_env(self, tmp_path, monkeypatch):
        """Test the config is read from the environment when omitted."""
        monkeypatch.setenv("AUTOMATION_SESSION_ROOT", str(tmp_path / "envroot"))
        with Session() as s:
            assert s.root == tmp_path / "envroot"
            assert s.stash_dir.is_dir()


# --- Test Host-Facing API ---

class TestSessionAPI:
    """Tests for the operations exposed to the scripting host."""

    def test_text_roundtrip(self, session):
        session.add_text("token", "t")
        view = session.get_secret("token")
        assert isinstance(view, TextView)
        assert view.text == "t"

    def test_user_password(self, session):
        session.add_user_password("db", "u", "p")
        view = session.get_secret("db")
        assert isinstance(view, UserPasswordView)
        assert (view.user, view.password) == ("u", "p")

    def test_ssh_key_written_under_secrets(self, session):
        """Test SSH keys land in the session's secrets directory."""
        session.add_ssh_private_key("deploy", "git", "KEY", "pp")
        view = session.get_secret("deploy")
        assert isinstance(view, SSHPrivateKeyView)
        assert view.private_key_file.parent == session.secrets_dir
        assert view.private_key_file.read_text() == "KEY"

    def test_overwrite(self, session):
        """Test the later add wins."""
        session.add_text("cred", "a")
        session.add_user_password("cred", "u", "p")
        assert isinstance(session.get_secret("cred"), UserPasswordView)

    def test_missing_secret(self, session):
        with pytest.raises(SecretNotFound):
            session.get_secret("missing")

    def test_stash_roundtrip(self, session, source):
        """Test save/load through the session."""
        handle = session.save(source)
        source.write_text("changed")
        assert session.load(handle) == b"artifact"
        assert (session.stash_dir / handle).exists()

    def test_save_working_directory(self, tmp_path, monkeypatch):
        """Test saving a tree that holds the session root leaves it out."""
        work = tmp_path / "work"
        work.mkdir()
        (work / "build.log").write_text("ok")
        monkeypatch.chdir(work)

        with Session(SessionConfig(root_dir=".automation")) as s:
            s.add_ssh_private_key("deploy", "git", "KEY")
            s.get_secret("deploy")
            handle = s.save(".")
            entry = s.stash_dir / handle
            assert (entry / "build.log").read_text() == "ok"
            assert not (entry / ".automation").exists()
            assert len(s.stash) == 1

    def test_load_never_saved(self, session):
        with pytest.raises(StashNotFound):
            session.load("never-saved-handle")


# --- Test Close ---

class TestClose:
    """Tests for session teardown."""

    def test_close_removes_tree(self, config, source):
        """Test close deletes every stashed file and key file."""
        s = Session(config)
        s.add_ssh_private_key("deploy", "git", "KEY")
        s.get_secret("deploy")
        s.save(source)
        s.close()
        assert s.state is SessionState.CLOSED
        assert not config.root_dir.exists()

    def test_operations_fail_after_close(self, config, source):
        """Test every operation raises SessionClosed after close."""
        s = Session(config)
        s.add_text("token", "value")
        handle = s.save(source)
        s.close()
        with pytest.raises(SessionClosed):
            s.get_secret("token")
        with pytest.raises(SessionClosed):
            s.add_text("token", "value")
        with pytest.raises(SessionClosed):
            s.save(source)
        with pytest.raises(SessionClosed):
            s.load(handle)
        with pytest.raises(SessionClosed):
            s.secrets.get("token")
        with pytest.raises(SessionClosed):
            s.stash.load(handle)

    def test_close_is_idempotent(self, config):
        """Test closing twice is harmless."""
        s = Session(config)
        s.close()
        s.close()
        assert s.closed is True

    def test_cleanup_failure(self, config, monkeypatch):
        """Test a removal error raises CleanupFailed and still closes."""
        s = Session(config)

        def fail(path):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(session_module, "remove_tree", fail)
        with pytest.raises(CleanupFailed):
            s.close()
        assert s.state is SessionState.CLOSED
        with pytest.raises(SessionClosed):
            s.get_secret("anything")
        monkeypatch.undo()

        # the next session still starts from a clean tree
        with Session(config) as fresh:
            assert list(fresh.stash_dir.iterdir()) == []


# --- Test Context Manager ---

class TestContextManager:
    """Tests for ``with Session() as session``."""

    def test_closes_on_exit(self, config):
        with Session(config) as s:
            s.add_text("token", "value")
        assert s.closed is True
        assert not config.root_dir.exists()

    def test_closes_on_error(self, config):
        """Test the tree is removed when the body raises."""
        with pytest.raises(RuntimeError, match="script failed"):
            with Session(config) as s:
                s.add_ssh_private_key("deploy", "git", "KEY")
                s.get_secret("deploy")
                raise RuntimeError("script failed")
        assert s.closed is True
        assert not config.root_dir.exists()

    def test_body_error_wins_over_cleanup_error(self, config, monkeypatch):
        """Test a cleanup failure does not mask the body's exception."""
        def fail(path):
            raise PermissionError(13, "Permission denied", str(path))

        with pytest.raises(RuntimeError, match="script failed"):
            with Session(config) as s:
                monkeypatch.setattr(session_module, "remove_tree", fail)
                raise RuntimeError("script failed")
        assert s.closed is True
