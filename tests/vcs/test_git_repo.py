"""Tests for vcs/git_repo.py - git commands and output parsing."""

from clubhouse.vcs.git_repo import (
    GitRepo,
    LogEntry,
    StatusFile,
    detect_directory,
    parse_log_line,
    parse_status_line,
)


class TestDetectDirectory:

    def test_git_directory(self, tmp_path):
        (tmp_path / ".git").mkdir()
        assert detect_directory(tmp_path) == "git"

    def test_git_file_marks_worktree(self, tmp_path):
        (tmp_path / ".git").write_text("gitdir: /elsewhere\n")
        assert detect_directory(tmp_path) == "git"

    def test_plain_directory(self, tmp_path):
        assert detect_directory(tmp_path) == "file"

    def test_missing(self, tmp_path):
        assert detect_directory(tmp_path / "nope") is None

    def test_file_is_not_directory(self, tmp_path):
        f = tmp_path / "f.txt"
        f.write_text("x")
        assert detect_directory(f) is None


class TestParseStatusLine:

    def test_modified_unstaged(self):
        assert parse_status_line(" M src/app.py") == StatusFile("src/app.py", "M", False)

    def test_added_staged(self):
        assert parse_status_line("A  new.py") == StatusFile("new.py", "A", True)

    def test_untracked_not_staged(self):
        assert parse_status_line("?? notes.txt") == StatusFile("notes.txt", "??", False)

    def test_staged_and_modified(self):
        entry = parse_status_line("MM both.py")
        assert entry.staged is True
        assert entry.status_code == "MM"


class TestParseLogLine:

    def test_parses_fields(self):
        entry = parse_log_line("abc123|abc|Fix bug|Ada|2026-01-02 10:00:00 +0000")
        assert entry == LogEntry("abc123", "abc", "Fix bug", "Ada", "2026-01-02 10:00:00 +0000")

    def test_subject_with_pipes_reassembled(self):
        entry = parse_log_line("h|s|a | b | c|Ada|2026-01-02")
        assert entry.subject == "a | b | c"
        assert entry.author == "Ada"
        assert entry.date == "2026-01-02"

    def test_too_few_fields(self):
        assert parse_log_line("h|s|subject|author") is None


class TestGitRepoCommands:

    def test_argv_and_cwd(self, shell, tmp_path):
        repo = GitRepo(tmp_path, shell)
        repo.add_worktree(tmp_path / "wt", "fix/standby")
        repo.remove_worktree(tmp_path / "wt")
        repo.delete_branch("fix/standby")
        repo.push("fix/standby")
        repo.format_patch("main")

        assert shell.commands == [
            ["worktree", "add", str(tmp_path / "wt"), "fix/standby"],
            ["worktree", "remove", str(tmp_path / "wt"), "--force"],
            ["branch", "-D", "fix/standby"],
            ["push", "-u", "origin", "fix/standby"],
            ["format-patch", "main..HEAD", "--stdout"],
        ]
        assert all(cwd == tmp_path for _, cwd in shell.calls)

    def test_has_commits(self, shell, tmp_path):
        repo = GitRepo(tmp_path, shell)
        assert repo.has_commits() is True
        shell.fail("rev-parse", "HEAD")
        assert repo.has_commits() is False

    def test_exists(self, shell, tmp_path):
        assert GitRepo(tmp_path, shell).exists() is False
        (tmp_path / ".git").mkdir()
        assert GitRepo(tmp_path, shell).exists() is True


class TestDetectBaseBranch:

    def test_first_existing_candidate(self, shell, tmp_path):
        shell.fail("rev-parse", "--verify", "main")
        assert GitRepo(tmp_path, shell).detect_base_branch() == "master"
        assert ["rev-parse", "--verify", "main"] in shell.commands

    def test_prefers_main(self, shell, tmp_path):
        assert GitRepo(tmp_path, shell).detect_base_branch() == "main"

    def test_falls_back_to_head(self, shell, tmp_path):
        shell.fail("rev-parse", "--verify")
        assert GitRepo(tmp_path, shell).detect_base_branch() == "HEAD"


class TestWorktreeQueries:

    def test_status(self, shell, tmp_path):
        shell.respond("status", output=" M a.py\n?? b.txt\n\n")
        files = GitRepo(tmp_path, shell).status()
        assert [f.path for f in files] == ["a.py", "b.txt"]

    def test_unique_commits(self, shell, tmp_path):
        shell.respond("log", output="h1|s1|one|Ada|d1\nbroken\nh2|s2|two|Bob|d2\n")
        commits = GitRepo(tmp_path, shell).unique_commits("main")

        assert [c.subject for c in commits] == ["one", "two"]
        assert shell.commands[0] == ["log", "main..HEAD", "--format=%H|%h|%s|%an|%ai"]

    def test_has_remote(self, shell, tmp_path):
        repo = GitRepo(tmp_path, shell)
        assert repo.has_remote() is False
        shell.respond("remote", output="origin\n")
        assert repo.has_remote() is True

    def test_untracked_files(self, shell, tmp_path):
        shell.respond("ls-files", output="new.txt\nother/file.py\n")
        assert GitRepo(tmp_path, shell).untracked_files() == ["new.txt", "other/file.py"]
