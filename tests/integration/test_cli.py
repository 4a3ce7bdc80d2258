"""End-to-end tests for the awesome-claude-code command line."""

import errno
import io

import pytest

from awesome_claude_code.setup import cli
from awesome_claude_code.setup.paths import get_bundled_source
from tests.helpers import SOURCE_FILES, FailingFileSystem, in_backup, read_tree, write_tree


def run(*argv, fs=None) -> int:
    return cli.main(list(argv), fs=fs)


class FakeStdin(io.StringIO):
    def __init__(self, tty: bool):
        super().__init__()
        self.tty = tty

    def isatty(self) -> bool:
        return self.tty


@pytest.fixture(autouse=True)
def non_interactive(monkeypatch):
    monkeypatch.setattr("sys.stdin", FakeStdin(tty=False))


# =============================================================================
# install
# =============================================================================


class TestInstallCommand:
    def test_install_creates_components(self, source_root, project_root, capsys):
        code = run("install", "--project-root", str(project_root), "--source", str(source_root))

        assert code == 0
        assert read_tree(project_root / ".claude") == SOURCE_FILES
        assert "installed to .claude/" in capsys.readouterr().out

    def test_install_dry_run_prints_plan(self, source_root, project_root, capsys):
        code = run(
            "install", "--project-root", str(project_root), "--source", str(source_root), "--dry-run"
        )

        out = capsys.readouterr().out
        assert code == 0
        assert "Planned changes" in out
        assert "Created: 3  Kept: 0" in out
        assert not (project_root / ".claude").exists()

    def test_install_failure_still_exits_zero(self, source_root, project_root, capsys):
        fs = FailingFileSystem(match=lambda p: p.suffix == ".md", errno_code=errno.EACCES)

        code = run("install", "--project-root", str(project_root), "--source", str(source_root), fs=fs)

        assert code == 0
        assert "WARN" in capsys.readouterr().out

    def test_install_from_missing_source_says_so(self, tmp_path, project_root, capsys):
        code = run("install", "--project-root", str(project_root), "--source", str(tmp_path / "typo"))

        out = capsys.readouterr().out
        assert code == 0
        assert "No components found at" in out
        assert "typo" in out
        assert not (project_root / ".claude").exists()

    def test_install_with_invalid_settings_uses_defaults(self, source_root, project_root, monkeypatch, capsys):
        monkeypatch.setenv("ACC_LOG_LEVEL", "verbose")

        code = run("install", "--project-root", str(project_root), "--source", str(source_root))

        out = capsys.readouterr().out
        assert code == 0
        assert "WARN" in out
        assert "ACC_LOG_LEVEL" in out
        assert read_tree(project_root / ".claude") == SOURCE_FILES

    def test_install_from_bundled_components(self, project_root):
        code = run("install", "--project-root", str(project_root))

        assert code == 0
        installed = read_tree(project_root / ".claude")
        assert installed == read_tree(get_bundled_source())
        assert "commands/acc-commit.md" in installed


# =============================================================================
# upgrade
# =============================================================================


class TestUpgradeCommand:
    def test_upgrade_prints_backup_location(self, source_root, project_root, backups_of, capsys):
        write_tree(project_root / ".claude", {"commands/acc-commit.md": "custom"})

        code = run("upgrade", "--project-root", str(project_root), "--source", str(source_root), "--yes")

        out = capsys.readouterr().out
        assert code == 0
        assert "Backup: " in out
        assert backups_of()[0].name in out
        assert "Created: 2  Overwritten: 1" in out
        assert "Upgrade complete!" in out

    def test_upgrade_without_existing_files_needs_no_backup(self, source_root, project_root, capsys):
        code = run("upgrade", "--project-root", str(project_root), "--source", str(source_root), "-y")

        assert code == 0
        assert "Backup: none" in capsys.readouterr().out

    def test_upgrade_dry_run(self, source_root, project_root, backups_of, capsys):
        write_tree(project_root / ".claude", {"commands/acc-commit.md": "custom"})

        code = run(
            "upgrade", "--project-root", str(project_root), "--source", str(source_root), "--dry-run"
        )

        out = capsys.readouterr().out
        assert code == 0
        assert "[DRY-RUN]" in out
        assert backups_of() == []
        assert (project_root / ".claude" / "commands" / "acc-commit.md").read_text() == "custom"

    def test_backup_failure_exits_nonzero(self, source_root, project_root, capsys):
        write_tree(project_root / ".claude", {"commands/acc-commit.md": "custom"})
        fs = FailingFileSystem(match=in_backup)

        code = run(
            "upgrade", "--project-root", str(project_root), "--source", str(source_root), "--yes", fs=fs
        )

        out = capsys.readouterr().out
        assert code == 1
        assert "ERROR" in out
        assert "free some disk space" in out
        assert (project_root / ".claude" / "commands" / "acc-commit.md").read_text() == "custom"

    def test_partial_upgrade_reports_pending_files(self, source_root, project_root, backups_of, capsys):
        write_tree(project_root / ".claude", {"agents/acc-code-reviewer.md": "custom"})
        fs = FailingFileSystem(match=lambda p: p.name == "SKILL.md" and not in_backup(p))

        code = run(
            "upgrade", "--project-root", str(project_root), "--source", str(source_root), "--yes", fs=fs
        )

        out = capsys.readouterr().out
        assert code == 1
        assert "Backup: " in out
        assert backups_of()[0].name in out
        assert "1 file(s) not written" in out

    def test_missing_source_exits_nonzero(self, tmp_path, project_root, capsys):
        code = run(
            "upgrade", "--project-root", str(project_root), "--source", str(tmp_path / "gone"), "--yes"
        )

        assert code == 1
        assert "reinstall" in capsys.readouterr().out

    def test_invalid_settings_exit_nonzero(self, source_root, project_root, monkeypatch, capsys):
        monkeypatch.setenv("ACC_LOG_LEVEL", "verbose")

        code = run("upgrade", "--project-root", str(project_root), "--source", str(source_root), "--yes")

        out = capsys.readouterr().out
        assert code == 1
        assert "ERROR" in out
        assert "ACC_LOG_LEVEL" in out
        assert "Hint: fix the ACC_* environment variables" in out
        assert not (project_root / ".claude").exists()

    def test_declined_confirmation_writes_nothing(self, source_root, project_root, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", FakeStdin(tty=True))
        monkeypatch.setattr(cli.Confirm, "ask", classmethod(lambda cls, *a, **k: False))

        code = run("upgrade", "--project-root", str(project_root), "--source", str(source_root))

        assert code == 0
        assert "Cancelled." in capsys.readouterr().out
        assert not (project_root / ".claude").exists()


# =============================================================================
# list
# =============================================================================


class TestListCommand:
    def test_lists_installed_components(self, source_root, project_root, capsys):
        run("install", "--project-root", str(project_root), "--source", str(source_root))
        write_tree(project_root / ".claude", {"commands/my-custom.md": "mine"})
        capsys.readouterr()

        code = run("list", "--project-root", str(project_root))

        out = capsys.readouterr().out
        assert code == 0
        assert "commands (2)" in out
        assert "my-custom" in out
        assert "acc-code-reviewer" in out
        assert "acc-git-workflow" in out

    def test_empty_project(self, project_root, capsys):
        code = run("list", "--project-root", str(project_root))

        out = capsys.readouterr().out
        assert code == 0
        assert "skills (0)" in out
        assert "none" in out


class TestParser:
    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_verbose_sets_log_level(self, project_root):
        import logging

        run("-vv", "list", "--project-root", str(project_root))

        assert logging.getLogger("awesome_claude_code").level == logging.DEBUG
