import pytest
from contributor_stats import ProgressReporter, AnalysisConfig


def build_log(commits):
    """
    Render commits into `git log --numstat` text.

    Each commit is (hash, name, email, date, [(added, deleted, filename), ...]);
    counts may be ints or '-' for binary files.
    """
    blocks = []
    for commit_hash, name, email, date, files in commits:
        lines = ["---", "\x00".join([commit_hash, name, email, date])]
        lines.extend(f"{added}\t{deleted}\t{filename}" for added, deleted, filename in files)
        blocks.append("\n".join(lines))
    return "\n".join(blocks) + "\n"


@pytest.fixture
def log_builder():
    return build_log


@pytest.fixture
def quiet_reporter():
    return ProgressReporter(quiet=True)


@pytest.fixture
def default_config():
    return AnalysisConfig()


@pytest.fixture
def sample_commits():
    """Four commits, two people (Alice under two names), one commit without a date."""
    return [
        (
            "aaa111",
            "Alice Developer",
            "alice@x.com",
            "2024-01-01T10:15:00+00:00",  # Monday
            [(10, 2, "src/app.py"), (5, 0, "README.md")],
        ),
        (
            "bbb222",
            "alice",
            "alice@x.com",
            "2024-01-02T14:00:00+00:00",  # Tuesday
            [(3, 1, "src/app.py")],
        ),
        (
            "ccc333",
            "Bob",
            "bob@y.com",
            "2024-02-05T09:30:00+00:00",  # Monday, ISO week 6
            [(7, 7, "src/app.py"), ("-", "-", "logo.png")],
        ),
        (
            "ddd444",
            "Bob",
            "bob@y.com",
            "",
            [(1, 0, "docs/guide.md")],
        ),
    ]


@pytest.fixture
def sample_log(sample_commits):
    return build_log(sample_commits)


@pytest.fixture
def scenario_log():
    """Alice twice under different names with one email, Bob once."""
    return build_log(
        [
            ("c1", "Alice Developer", "alice@x.com", "2024-03-04T09:00:00+00:00", [(4, 0, "a.py")]),
            ("c2", "alice", "alice@x.com", "2024-03-05T11:00:00+00:00", [(2, 1, "a.py")]),
            ("c3", "Bob", "bob@y.com", "2024-03-06T16:00:00+00:00", [(9, 3, "b.py")]),
        ]
    )


@pytest.fixture
def sample_log_file(tmp_path, sample_log):
    path = tmp_path / "git.log"
    path.write_text(sample_log, encoding="utf-8")
    return path
