#!/usr/bin/env python3
"""
Git Contributor Stats - per-person contribution analytics from git history

Turns the text of a `git log --numstat` dump into contributor analytics:
- Commit log parsing (header + numstat blocks)
- Identity resolution (alias groups, canonical overrides, fuzzy matching)
- Streaming per-contributor aggregation (commits, lines, per-file stats)
- Rankings, top stats, monthly/ISO-weekly frequency, weekday x hour heatmap
- Bus factor: files with exactly one owner

The log text is expected in this shape (one block per commit):

    git log --numstat --date=iso-strict --no-color \\
        --pretty=format:---%n%H%x00%an%x00%ae%x00%ad

The analysis itself never runs git, never touches the network and keeps no
state between runs: the same text and configuration always give the same
result.

Version: 1.2.0
"""

import json
import os
import re
import sys
import time
from functools import lru_cache
from datetime import datetime, timezone
from typing import Dict, List, Set, Tuple, Optional, Any, Callable
from collections import Counter
from dataclasses import dataclass, field

import click
import yaml
from tqdm import tqdm
from colorama import Fore, Style, just_fix_windows_console


# Version information
VERSION = "1.2.0"
SCHEMA_VERSION = "1.0.0"

DEFAULT_SIMILARITY_THRESHOLD = 0.85
DEFAULT_TOP_FILES = 10

GROUP_BY_CHOICES = ("email", "name")
SORT_BY_CHOICES = ("changes", "commits", "additions", "deletions")
SORT_BY_ALIASES = {
    "adds": "additions",
    "lines-added": "additions",
    "dels": "deletions",
    "lines-deleted": "deletions",
}


# ============================================================================
# TEMPORAL LABELS
# ============================================================================

# "+0100" / " +0100" style offsets as printed by `git log --date=iso`
_COMPACT_OFFSET = re.compile(r"(?<=\d)\s*([+-])(\d{2}):?(\d{2})$")


class TemporalLabeler:
    """
    Parse commit dates and derive the bucket keys used by the analyzer.
    Uses ISO 8601 week numbering (Monday start, week 1 holds the first Thursday).
    """

    @staticmethod
    @lru_cache(maxsize=10000)
    def parse_timestamp(dt_string: str) -> Optional[datetime]:
        """
        Parse an ISO-8601 date string from a commit header.
        Cached since timestamps often repeat in git history.

        Args:
            dt_string: e.g. '2024-04-12T13:14:18+02:00', '...Z' or '... +0200'

        Returns:
            datetime (offset-aware when the text carries an offset) or None
        """
        if not dt_string or not dt_string.strip():
            return None

        text = dt_string.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _COMPACT_OFFSET.sub(r"\1\2:\3", text)

        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None

    @staticmethod
    def get_temporal_labels(dt: datetime) -> Dict[str, Any]:
        """
        Bucket keys for one commit timestamp, read in the commit's own offset.

        Returns:
            Dict with month_key (YYYY-MM), week_key (YYYY-Www),
            weekday (0=Sunday..6=Saturday) and hour (0-23)
        """
        iso_year, iso_week, iso_weekday = dt.isocalendar()
        return {
            "month_key": f"{dt.year:04d}-{dt.month:02d}",
            "week_key": f"{iso_year:04d}-W{iso_week:02d}",
            "weekday": iso_weekday % 7,
            "hour": dt.hour,
        }


def _sortable_instant(dt: datetime) -> datetime:
    """Naive timestamps are compared as UTC so mixed inputs stay orderable."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


# ============================================================================
# NAME NORMALIZATION & SIMILARITY
# ============================================================================

# ASCII letters only: a name written purely in another script reduces to ''
_NON_KEY_CHARS = re.compile(r"[^a-zA-Z0-9\s._-]")
_WHITESPACE_RUN = re.compile(r"\s+")


@lru_cache(maxsize=4096)
def normalize_name(raw: Optional[str]) -> str:
    """
    Comparison key for an author name or email. Never used for display.

    'JohnDoe@EXAMPLE.COM' -> 'johndoe', 'Jane  O\\'Neil' -> 'jane oneil'
    """
    if raw is None:
        return ""
    text = str(raw).split("@", 1)[0]
    text = _NON_KEY_CHARS.sub("", text)
    text = _WHITESPACE_RUN.sub(" ", text)
    return text.strip().lower()


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost edit distance (insert, delete, substitute). Case-sensitive."""
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current[j] = min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            )
        previous = current
    return previous[-1]


def similarity_score(a: Optional[str], b: Optional[str]) -> float:
    """
    Case-insensitive similarity in [0, 1] derived from edit distance.
    Two empty strings are identical (1.0); empty vs non-empty scores 0.0.
    """
    a = a or ""
    b = b or ""
    longest = max(len(a), len(b), 1)
    return 1 - levenshtein_distance(a.lower(), b.lower()) / longest


# ============================================================================
# DATA STRUCTURES & MODELS
# ============================================================================


@dataclass(frozen=True)
class FileDelta:
    """One numstat line: lines added/deleted for a file in a commit"""

    filename: str
    added: int = 0
    deleted: int = 0

    @property
    def changes(self) -> int:
        return self.added + self.deleted


@dataclass(frozen=True)
class CommitRecord:
    """A parsed commit. Totals are running sums over `files`."""

    hash: str
    author_name: str = ""
    author_email: str = ""
    timestamp: Optional[datetime] = None
    raw_date: str = ""
    additions: int = 0
    deletions: int = 0
    files_changed: int = 0
    files: Tuple[FileDelta, ...] = ()


@dataclass
class CanonicalDetails:
    """Best-known display information for a canonical identity"""

    name: str = ""
    email: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "email": self.email}


@dataclass
class ContributorAccumulator:
    """
    Running totals for one canonical identity.
    Only the aggregator writes to it; read-only once aggregation is done.
    """

    commits: int = 0
    additions: int = 0
    deletions: int = 0
    files: Dict[str, Dict[str, int]] = field(default_factory=dict)
    emails: Set[str] = field(default_factory=set)
    first_commit: Optional[datetime] = None
    last_commit: Optional[datetime] = None

    @property
    def changes(self) -> int:
        return self.additions + self.deletions


@dataclass
class RunMetrics:
    """Diagnostics for one run. Never part of the analysis output."""

    commits_parsed: int = 0
    lines_skipped: int = 0
    headers_discarded: int = 0
    canonical_identities: int = 0
    explicit_alias_hits: int = 0
    fuzzy_merges: int = 0
    total_time: float = 0.0

    def to_dict(self) -> Dict:
        return {
            "commits_parsed": self.commits_parsed,
            "lines_skipped": self.lines_skipped,
            "headers_discarded": self.headers_discarded,
            "canonical_identities": self.canonical_identities,
            "explicit_alias_hits": self.explicit_alias_hits,
            "fuzzy_merges": self.fuzzy_merges,
            "total_time_seconds": round(self.total_time, 3),
        }


# ============================================================================
# CONFIGURATION
# ============================================================================


@dataclass
class AnalysisConfig:
    """
    Every knob the analysis reads, validated once at construction.

    similarity_threshold=None turns fuzzy matching off; combined with no
    alias_config every distinct identity stays its own contributor.
    """

    group_by: str = "email"
    sort_by: str = "changes"
    similarity_threshold: Optional[float] = DEFAULT_SIMILARITY_THRESHOLD
    alias_config: Optional[Any] = None
    top: int = 0
    top_files: int = DEFAULT_TOP_FILES

    def __post_init__(self):
        self.group_by = (self.group_by or "email").lower()
        if self.group_by not in GROUP_BY_CHOICES:
            raise ValueError(
                f"group_by must be one of {', '.join(GROUP_BY_CHOICES)}: {self.group_by!r}"
            )

        sort_by = (self.sort_by or "changes").lower()
        self.sort_by = SORT_BY_ALIASES.get(sort_by, sort_by)
        if self.sort_by not in SORT_BY_CHOICES:
            raise ValueError(
                f"sort_by must be one of {', '.join(SORT_BY_CHOICES)}: {sort_by!r}"
            )

        if self.similarity_threshold is not None:
            self.similarity_threshold = float(self.similarity_threshold)
            if not 0.0 <= self.similarity_threshold <= 1.0:
                raise ValueError(
                    f"similarity_threshold must be within [0, 1]: {self.similarity_threshold}"
                )

        for name in ("top", "top_files"):
            value = int(getattr(self, name) or 0)
            if value < 0:
                raise ValueError(f"{name} must not be negative: {value}")
            setattr(self, name, value)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "AnalysisConfig":
        """Build from a config-file style mapping (kebab-case keys accepted)"""
        normalized = {k.replace("-", "_"): v for k, v in (data or {}).items()}
        if "similarity" in normalized and "similarity_threshold" not in normalized:
            normalized["similarity_threshold"] = normalized.pop("similarity")
        if "aliases" in normalized and "alias_config" not in normalized:
            normalized["alias_config"] = normalized.pop("aliases")
        known = {
            "group_by",
            "sort_by",
            "similarity_threshold",
            "alias_config",
            "top",
            "top_files",
        }
        return cls(**{k: v for k, v in normalized.items() if k in known})


def load_config_file(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.
    Supports .contributor-stats.yaml, .contributor-stats.json and friends.
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    file_ext = os.path.splitext(config_path)[1].lower()

    with open(config_path, "r", encoding="utf-8") as f:
        if file_ext in [".yaml", ".yml"]:
            return yaml.safe_load(f) or {}
        elif file_ext == ".json":
            return json.load(f)
        else:
            raise ValueError(f"Unsupported config file format: {file_ext}")


CONFIG_FILE_NAMES = [
    ".contributor-stats.yaml",
    ".contributor-stats.yml",
    ".contributor-stats.json",
]
ALIAS_FILE_NAME = ".git-contributor-stats-aliases.json"


def _discover(file_names: List[str], search_dir: Optional[str]) -> Optional[str]:
    search_paths = [search_dir] if search_dir else []
    search_paths.append(os.getcwd())

    for directory in search_paths:
        for file_name in file_names:
            candidate = os.path.join(directory, file_name)
            if os.path.isfile(candidate):
                return candidate
    return None


def find_config_file(search_dir: Optional[str] = None) -> Optional[str]:
    """Auto-discover a configuration file in `search_dir` or the current directory"""
    return _discover(CONFIG_FILE_NAMES, search_dir)


def find_alias_file(search_dir: Optional[str] = None) -> Optional[str]:
    """Auto-discover .git-contributor-stats-aliases.json"""
    return _discover([ALIAS_FILE_NAME], search_dir)


def load_alias_config(
    alias_path: Optional[str], errors: Optional[List[str]] = None
) -> Optional[Any]:
    """
    Load an alias configuration file (JSON or YAML).

    Missing, unreadable or malformed files count as "no aliases": the reason
    goes to `errors` (when given) and None is returned.
    """
    if not alias_path:
        return None

    try:
        data = load_config_file(alias_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        if errors is not None:
            errors.append(f"Ignoring alias file {alias_path}: {e}")
        return None

    if not isinstance(data, (dict, list)):
        if errors is not None:
            errors.append(
                f"Ignoring alias file {alias_path}: expected an object or a list"
            )
        return None
    return data


PRESETS: Dict[str, Dict[str, Any]] = {
    "standard": {"similarity": DEFAULT_SIMILARITY_THRESHOLD},
    "strict": {"similarity": 1.0},
    "lenient": {"similarity": 0.75},
}


class ConfigResolver:
    """
    Resolve configuration with precedence: CLI > Config File > Preset > Defaults
    """

    def __init__(
        self,
        cli_args: Dict[str, Any],
        config_path: Optional[str],
        preset_name: Optional[str],
        search_dir: Optional[str] = None,
    ):
        self.cli = {k: v for k, v in cli_args.items() if v is not None}
        self.config = {}
        self.config_path = config_path
        self.warnings: List[str] = []

        if config_path:
            self.config = load_config_file(config_path) or {}
        else:
            auto_path = find_config_file(search_dir)
            if auto_path:
                try:
                    self.config = load_config_file(auto_path) or {}
                    self.config_path = auto_path
                except (OSError, ValueError, yaml.YAMLError) as e:
                    self.warnings.append(
                        f"Found config file but failed to load: {auto_path}: {e}"
                    )

        if not isinstance(self.config, dict):
            self.warnings.append(f"Ignoring config file {self.config_path}: not a mapping")
            self.config = {}

        # kebab-case keys in files map onto option names
        self.config = {k.replace("-", "_"): v for k, v in self.config.items()}

        final_preset_name = preset_name or self.config.get("preset")
        self.preset = PRESETS.get(final_preset_name, {}) if final_preset_name else {}

    def get(self, key: str, default: Any = None) -> Any:
        """Resolve value based on precedence"""
        if key in self.cli:
            return self.cli[key]
        if key in self.config:
            return self.config[key]
        if key in self.preset:
            return self.preset[key]
        return default


# ============================================================================
# LOG PARSING
# ============================================================================

COMMIT_SEPARATOR = "---"
_LINE_BREAK = re.compile(r"\r?\n")


def _parse_count(field_text: str) -> Optional[int]:
    """Numstat count; '-' (binary file) is 0, anything non-numeric is None"""
    if field_text == "-":
        return 0
    text = field_text.strip()
    if text.isascii() and text.isdigit():
        return int(text)
    return None


class GitLogParser:
    """
    Parse sentinel-delimited `git log --numstat` text into CommitRecords.

    Odd input never raises: bad headers and short or stray lines are skipped
    and described in `errors`.
    """

    def __init__(self):
        self.errors: List[str] = []
        self.lines_skipped = 0
        self.headers_discarded = 0

    def parse(self, log_text: Optional[str]) -> List[CommitRecord]:
        """
        Args:
            log_text: raw log text; None and '' give an empty list

        Returns:
            CommitRecords in input order
        """
        if log_text is None:
            return []
        if not isinstance(log_text, str):
            raise TypeError(
                f"log text must be str, not {type(log_text).__name__}"
            )

        commits: List[CommitRecord] = []
        current: Optional[Dict[str, Any]] = None
        expect_header = False

        for line_no, line in enumerate(_LINE_BREAK.split(log_text), start=1):
            if line == COMMIT_SEPARATOR:
                if current is not None:
                    commits.append(self._build_commit(current))
                current = None
                expect_header = True
                continue

            if not line:
                continue

            if expect_header:
                expect_header = False
                current = self._parse_header(line, line_no)
                continue

            if current is None:
                self._skip(line_no, line, "outside of a commit block")
                continue

            self._parse_numstat_line(line, line_no, current)

        if current is not None:
            commits.append(self._build_commit(current))

        return commits

    def _skip(self, line_no: int, line: str, reason: str):
        self.lines_skipped += 1
        self.errors.append(f"line {line_no}: skipped {line[:50]!r} ({reason})")

    def _parse_header(self, line: str, line_no: int) -> Optional[Dict[str, Any]]:
        """Parse `hash\\x00name\\x00email\\x00date`; None when the hash is missing"""
        parts = line.split("\x00")
        commit_hash = parts[0].strip()
        if not commit_hash:
            self.headers_discarded += 1
            self.errors.append(f"line {line_no}: discarded commit header without hash")
            return None

        raw_date = parts[3].strip() if len(parts) > 3 else ""
        return {
            "hash": commit_hash,
            "author_name": parts[1] if len(parts) > 1 else "",
            "author_email": parts[2] if len(parts) > 2 else "",
            "raw_date": raw_date,
            "timestamp": TemporalLabeler.parse_timestamp(raw_date),
            "additions": 0,
            "deletions": 0,
            "files_changed": 0,
            "files": [],
        }

    def _parse_numstat_line(self, line: str, line_no: int, current: Dict[str, Any]):
        """
        Format: "<added>\\t<deleted>\\t<filename>"
        Filenames may contain tabs; everything after the second field is the name.
        """
        parts = line.split("\t")
        if len(parts) < 3:
            self._skip(line_no, line, "not a numstat line")
            return

        added = _parse_count(parts[0])
        deleted = _parse_count(parts[1])
        if added is None or deleted is None:
            self.errors.append(
                f"line {line_no}: non-numeric counts in {line[:50]!r}, counted as 0"
            )
        delta = FileDelta(
            filename="\t".join(parts[2:]),
            added=added or 0,
            deleted=deleted or 0,
        )

        current["additions"] += delta.added
        current["deletions"] += delta.deleted
        current["files_changed"] += 1
        current["files"].append(delta)

    @staticmethod
    def _build_commit(current: Dict[str, Any]) -> CommitRecord:
        return CommitRecord(
            hash=current["hash"],
            author_name=current["author_name"],
            author_email=current["author_email"],
            timestamp=current["timestamp"],
            raw_date=current["raw_date"],
            additions=current["additions"],
            deletions=current["deletions"],
            files_changed=current["files_changed"],
            files=tuple(current["files"]),
        )


def parse_git_log(log_text: Optional[str]) -> List[CommitRecord]:
    """Parse log text with a throwaway parser"""
    return GitLogParser().parse(log_text)


# ============================================================================
# IDENTITY RESOLUTION
# ============================================================================

_PATTERN_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}
# accepted but meaningless for a single search
_IGNORED_PATTERN_FLAGS = set("guy")


def _is_pattern_entry(entry: str) -> bool:
    return entry.startswith("/") and entry.rfind("/") > 0


def _compile_pattern_entry(entry: str) -> Optional[re.Pattern]:
    """Compile a '/regex/flags' alias entry; None when it is not valid"""
    last_slash = entry.rfind("/")
    body, flag_text = entry[1:last_slash], entry[last_slash + 1 :]

    flags = 0
    for flag in flag_text:
        if flag in _PATTERN_FLAGS:
            flags |= _PATTERN_FLAGS[flag]
        elif flag not in _IGNORED_PATTERN_FLAGS:
            return None

    try:
        return re.compile(body, flags)
    except re.error:
        return None


class AliasResolver:
    """
    Map normalized raw identities onto canonical identities for one run.

    Explicit aliases (groups, map entries, /regex/ patterns) win outright.
    Anything else is compared against the canonical identities registered so
    far in this run and joins the most similar one at or above the threshold
    (earliest registered on ties), or becomes a new canonical identity.

    Holds run-scoped mutable state: build a fresh instance for every run and
    never share one between concurrent aggregations.
    """

    def __init__(
        self,
        alias_config: Optional[Any] = None,
        similarity_threshold: Optional[float] = None,
    ):
        self.similarity_threshold = similarity_threshold
        self.alias_map: Dict[str, str] = {}
        self.patterns: List[Tuple[re.Pattern, str]] = []
        self.overrides: Dict[str, CanonicalDetails] = {}
        self.errors: List[str] = []
        self.configured = False

        self.explicit_hits = 0
        self.fuzzy_merges = 0

        self._canonical_order: List[str] = []
        self._canonical_set: Set[str] = set()
        self._resolved: Dict[str, str] = {}
        self._details: Dict[str, CanonicalDetails] = {}
        self._fallback_names: Set[str] = set()

        self._load_config(alias_config)

    @property
    def is_identity(self) -> bool:
        """True when resolution is a plain pass-through of the normalized key"""
        return not self.configured and self.similarity_threshold is None

    @property
    def canonical_identities(self) -> List[str]:
        """Canonical identities in registration order"""
        return list(self._canonical_order)

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------

    def _load_config(self, config: Optional[Any]):
        if config is None:
            return

        groups: List[Any] = []
        mapping: Dict[str, Any] = {}
        canonical: Dict[str, Any] = {}

        if isinstance(config, list):
            groups = config
        elif isinstance(config, dict):
            if isinstance(config.get("groups"), list):
                groups = config["groups"]
            if isinstance(config.get("map"), dict):
                mapping = config["map"]
            if isinstance(config.get("canonical"), dict):
                canonical = config["canonical"]
            if not mapping:
                mapping = {
                    k: v
                    for k, v in config.items()
                    if k not in ("groups", "map", "canonical") and isinstance(v, str)
                }
        else:
            self.errors.append(
                f"Ignoring alias configuration of type {type(config).__name__}"
            )
            return

        self.configured = True
        self._load_canonical(canonical)
        self._load_map(mapping)
        self._load_groups(groups)

    def _load_canonical(self, canonical: Dict[str, Any]):
        for identity, info in canonical.items():
            if not isinstance(info, dict):
                self.errors.append(f"Ignoring canonical entry for {identity!r}")
                continue
            name = info.get("name")
            email = info.get("email")
            self.overrides[normalize_name(identity)] = CanonicalDetails(
                name=name if isinstance(name, str) else "",
                email=email if isinstance(email, str) else "",
            )

    def _load_map(self, mapping: Dict[str, Any]):
        for alias, target in mapping.items():
            if not isinstance(target, str) or not normalize_name(target):
                self.errors.append(f"Ignoring alias map entry {alias!r}")
                continue
            self._add_alias(alias, normalize_name(target))

    def _load_groups(self, groups: List[Any]):
        """
        Groups sharing a plain member form one equivalence class. Each class
        maps onto a single representative: the first member with a canonical
        override, else the first member of the earliest group in the class.
        """
        parent: Dict[str, str] = {}
        first_seen: Dict[str, int] = {}

        def find(key: str) -> str:
            while parent[key] != key:
                parent[key] = parent[parent[key]]
                key = parent[key]
            return key

        valid_groups: List[Tuple[List[str], List[str]]] = []
        for index, group in enumerate(groups):
            if not isinstance(group, list) or not group:
                continue
            members = [m for m in group if isinstance(m, str)]
            literal_keys = [
                normalize_name(m) for m in members if not _is_pattern_entry(m)
            ]
            literal_keys = [k for k in literal_keys if k]
            if not literal_keys:
                self.errors.append(f"Ignoring alias group #{index}: no plain identity")
                continue

            for key in literal_keys:
                if key not in parent:
                    parent[key] = key
                    first_seen[key] = len(first_seen)
            root = find(literal_keys[0])
            for key in literal_keys[1:]:
                other = find(key)
                if other == root:
                    continue
                # the earlier-seen root stays the class root
                if first_seen[other] < first_seen[root]:
                    root, other = other, root
                parent[other] = root
            valid_groups.append((members, literal_keys))

        classes: Dict[str, List[str]] = {}
        for key in sorted(parent, key=first_seen.get):
            classes.setdefault(find(key), []).append(key)
        representatives = {
            root: next((k for k in keys if k in self.overrides), keys[0])
            for root, keys in classes.items()
        }

        for members, literal_keys in valid_groups:
            representative = representatives[find(literal_keys[0])]
            for member in members:
                self._add_alias(member, representative)

    def _add_alias(self, entry: str, canonical: str):
        if _is_pattern_entry(entry):
            pattern = _compile_pattern_entry(entry)
            if pattern is None:
                self.errors.append(f"Ignoring invalid alias pattern {entry!r}")
                return
            self.patterns.append((pattern, canonical))
            return

        key = normalize_name(entry)
        if key:
            self.alias_map[key] = canonical

    # ------------------------------------------------------------------
    # resolution
    # ------------------------------------------------------------------

    def resolve(
        self,
        normalized_key: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> str:
        """
        Canonical identity for a normalized raw identity.

        Args:
            normalized_key: normalize_name() of the grouping field
            name: raw author name of the commit, for aliases and display details
            email: raw author email of the commit, for aliases and display details

        Returns:
            The canonical identity; stable for this key for the rest of the run
        """
        key = normalized_key or ""
        canonical = self._resolved.get(key)

        if canonical is None:
            canonical = self._explicit_match(key, name, email)
            if canonical is not None:
                self.explicit_hits += 1
            elif self.similarity_threshold is not None:
                canonical = self._fuzzy_match(key)
                if canonical is not None and canonical != key:
                    self.fuzzy_merges += 1

            if canonical is None:
                canonical = key
            self._register(canonical)
            self._resolved[key] = canonical

        self._update_details(canonical, name or "", email or "")
        return canonical

    def __call__(
        self,
        normalized_key: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> str:
        return self.resolve(normalized_key, name, email)

    def _explicit_match(
        self, key: str, name: Optional[str], email: Optional[str]
    ) -> Optional[str]:
        for candidate in (key, normalize_name(name), normalize_name(email)):
            if candidate and candidate in self.alias_map:
                return self.alias_map[candidate]

        raw_name = name or ""
        raw_email = email or ""
        for pattern, canonical in self.patterns:
            if pattern.search(raw_name) or pattern.search(raw_email):
                return canonical
        return None

    def _fuzzy_match(self, key: str) -> Optional[str]:
        """Most similar registered canonical identity at or above the threshold"""
        best: Optional[str] = None
        best_score = -1.0
        for candidate in self._canonical_order:
            score = similarity_score(key, candidate)
            # strict '>' keeps the earliest registered identity on ties
            if score >= self.similarity_threshold and score > best_score:
                best, best_score = candidate, score
        return best

    def _register(self, canonical: str):
        if canonical not in self._canonical_set:
            self._canonical_set.add(canonical)
            self._canonical_order.append(canonical)

    def _update_details(self, canonical: str, name: str, email: str):
        """Improve display details: a real email beats none, a real name beats a fallback"""
        name = name.strip()
        email = email.strip()
        details = self._details.get(canonical)

        if details is None:
            details = CanonicalDetails(name=name, email=email)
            if not name and email:
                details.name = email.split("@", 1)[0]
                self._fallback_names.add(canonical)
            self._details[canonical] = details
            return

        if email and not details.email:
            details.email = email
        if name and (not details.name or canonical in self._fallback_names):
            details.name = name
            self._fallback_names.discard(canonical)
        elif not details.name and email:
            details.name = email.split("@", 1)[0]
            self._fallback_names.add(canonical)

    def details(self, canonical: str) -> CanonicalDetails:
        """Display details, explicit canonical overrides first"""
        inferred = self._details.get(canonical, CanonicalDetails())
        override = self.overrides.get(canonical)
        if override is None:
            return CanonicalDetails(name=inferred.name, email=inferred.email)
        return CanonicalDetails(
            name=override.name or inferred.name,
            email=override.email or inferred.email,
        )


def build_alias_resolver(
    alias_config: Optional[Any] = None,
    similarity_threshold: Optional[float] = None,
) -> AliasResolver:
    """Fresh resolver for one run"""
    return AliasResolver(alias_config, similarity_threshold)


# ============================================================================
# AGGREGATION
# ============================================================================


class ContributorAggregator:
    """
    Fold commits, in order, into one ContributorAccumulator per canonical identity.
    A single sequential pass owns the accumulator map.
    """

    def __init__(self, config: AnalysisConfig, resolver: AliasResolver):
        self.config = config
        self.resolver = resolver
        self.contributors: Dict[str, ContributorAccumulator] = {}
        self.commits_processed = 0

    def raw_identity(self, commit: CommitRecord) -> str:
        """Grouping field of a commit, falling back to the other one when empty"""
        if self.config.group_by == "name":
            return commit.author_name or commit.author_email
        return commit.author_email or commit.author_name

    def process_commit(self, commit: CommitRecord) -> str:
        """Attribute one commit; returns its canonical identity"""
        canonical = self.resolver.resolve(
            normalize_name(self.raw_identity(commit)),
            commit.author_name,
            commit.author_email,
        )

        acc = self.contributors.get(canonical)
        if acc is None:
            acc = ContributorAccumulator()
            self.contributors[canonical] = acc

        acc.commits += 1
        acc.additions += commit.additions
        acc.deletions += commit.deletions
        if commit.author_email:
            acc.emails.add(commit.author_email.lower())

        if commit.timestamp is not None:
            instant = _sortable_instant(commit.timestamp)
            if acc.first_commit is None or instant < _sortable_instant(acc.first_commit):
                acc.first_commit = commit.timestamp
            if acc.last_commit is None or instant > _sortable_instant(acc.last_commit):
                acc.last_commit = commit.timestamp

        for delta in commit.files:
            stats = acc.files.get(delta.filename)
            if stats is None:
                stats = {"added": 0, "deleted": 0, "changes": 0}
                acc.files[delta.filename] = stats
            stats["added"] += delta.added
            stats["deleted"] += delta.deleted
            stats["changes"] += delta.changes

        self.commits_processed += 1
        return canonical

    def aggregate(
        self, commits: List[CommitRecord], progress_bar: Optional[tqdm] = None
    ) -> Dict[str, ContributorAccumulator]:
        """Process every commit in order and return the accumulator map"""
        for commit in commits:
            self.process_commit(commit)
            if progress_bar is not None:
                progress_bar.update(1)
        return self.contributors


# ============================================================================
# ANALYSIS
# ============================================================================


def pick_sort_metric(sort_by: Optional[str]) -> Callable[[Dict[str, Any]], Tuple]:
    """
    Sort key for contributor entries, best first.
    Ties fall back to a secondary metric, then to the canonical key.
    """
    metric = (sort_by or "changes").lower()
    metric = SORT_BY_ALIASES.get(metric, metric)

    if metric == "commits":
        return lambda c: (-c["commits"], -c["changes"], c["key"])
    if metric == "additions":
        return lambda c: (-c["added"], -c["commits"], c["key"])
    if metric == "deletions":
        return lambda c: (-c["deleted"], -c["commits"], c["key"])
    return lambda c: (-c["changes"], -c["commits"], c["key"])


def _isoformat(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt is not None else None


TOP_STAT_METRICS = {
    "byCommits": "commits",
    "byAdditions": "added",
    "byDeletions": "deleted",
    "byNet": "net",
    "byChanges": "changes",
}


@dataclass(frozen=True)
class AnalysisResult:
    """
    Final analytics for one run. Built once, never mutated afterwards;
    `to_dict()` is the JSON shape handed to report and chart renderers.
    """

    total_commits: int
    contributors: Dict[str, Dict[str, Any]]
    top_contributors: List[Dict[str, Any]]
    top_stats: Dict[str, Optional[Dict[str, Any]]]
    commit_frequency: Dict[str, Dict[str, int]]
    heatmap: List[List[int]]
    bus_factor: Dict[str, List[Dict[str, Any]]]
    summary: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemaVersion": SCHEMA_VERSION,
            "totalCommits": self.total_commits,
            "contributors": self.contributors,
            "topContributors": self.top_contributors,
            "topStats": self.top_stats,
            "commitFrequency": self.commit_frequency,
            "heatmap": self.heatmap,
            "busFactor": self.bus_factor,
            "summary": self.summary,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


class ContributorAnalyzer:
    """
    Derive rankings, top stats, commit frequency, heatmap and bus factor
    from the accumulators and the commit list.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()

    def analyze(
        self,
        commits: List[CommitRecord],
        contributors: Dict[str, ContributorAccumulator],
        resolver: AliasResolver,
    ) -> AnalysisResult:
        entries = [
            self._contributor_entry(key, acc, resolver.details(key))
            for key, acc in contributors.items()
        ]

        ranked = sorted(
            (self._ranked_entry(entry) for entry in entries),
            key=pick_sort_metric(self.config.sort_by),
        )
        top_stats = self._top_stats(ranked, list(contributors))
        if self.config.top > 0:
            ranked = ranked[: self.config.top]

        monthly, weekly, heatmap = self._temporal_activity(commits)

        return AnalysisResult(
            total_commits=len(commits),
            contributors={entry.pop("key"): entry for entry in entries},
            top_contributors=ranked,
            top_stats=top_stats,
            commit_frequency={"monthly": monthly, "weekly": weekly},
            heatmap=heatmap,
            bus_factor={"filesSingleOwner": self._single_owner_files(contributors)},
            summary=self._summary(contributors),
        )

    @staticmethod
    def _contributor_entry(
        key: str, acc: ContributorAccumulator, details: CanonicalDetails
    ) -> Dict[str, Any]:
        return {
            "key": key,
            "name": details.name,
            "email": details.email,
            "commits": acc.commits,
            "added": acc.additions,
            "deleted": acc.deletions,
            "files": {name: dict(stats) for name, stats in acc.files.items()},
            "emails": sorted(acc.emails),
            "firstCommitDate": _isoformat(acc.first_commit),
            "lastCommitDate": _isoformat(acc.last_commit),
        }

    def _ranked_entry(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        files = sorted(
            entry["files"].items(), key=lambda item: (-item[1]["changes"], item[0])
        )
        if self.config.top_files > 0:
            files = files[: self.config.top_files]

        return {
            "key": entry["key"],
            "name": entry["name"],
            "email": entry["email"],
            "commits": entry["commits"],
            "added": entry["added"],
            "deleted": entry["deleted"],
            "net": entry["added"] - entry["deleted"],
            "changes": entry["added"] + entry["deleted"],
            "files": {name: dict(stats) for name, stats in entry["files"].items()},
            "topFiles": [
                {
                    "filename": filename,
                    "added": stats["added"],
                    "deleted": stats["deleted"],
                    "changes": stats["changes"],
                }
                for filename, stats in files
            ],
        }

    @staticmethod
    def _top_stats(
        ranked: List[Dict[str, Any]], first_seen: List[str]
    ) -> Dict[str, Optional[Dict[str, Any]]]:
        """Best contributor per metric; ties go to the first-seen contributor"""
        by_key = {entry["key"]: entry for entry in ranked}
        ordered = [by_key[key] for key in first_seen]

        top_stats: Dict[str, Optional[Dict[str, Any]]] = {}
        for label, metric in TOP_STAT_METRICS.items():
            best = None
            for entry in ordered:
                if best is None or entry[metric] > best[metric]:
                    best = entry
            top_stats[label] = best
        return top_stats

    @staticmethod
    def _temporal_activity(
        commits: List[CommitRecord],
    ) -> Tuple[Dict[str, int], Dict[str, int], List[List[int]]]:
        monthly: Counter = Counter()
        weekly: Counter = Counter()
        heatmap = [[0] * 24 for _ in range(7)]

        for commit in commits:
            if commit.timestamp is None:
                continue
            labels = TemporalLabeler.get_temporal_labels(commit.timestamp)
            monthly[labels["month_key"]] += 1
            weekly[labels["week_key"]] += 1
            heatmap[labels["weekday"]][labels["hour"]] += 1

        return dict(sorted(monthly.items())), dict(sorted(weekly.items())), heatmap

    @staticmethod
    def _single_owner_files(
        contributors: Dict[str, ContributorAccumulator],
    ) -> List[Dict[str, Any]]:
        owners: Dict[str, Set[str]] = {}
        for key, acc in contributors.items():
            for filename in acc.files:
                owners.setdefault(filename, set()).add(key)

        single_owner = []
        for filename, keys in owners.items():
            if len(keys) != 1:
                continue
            (owner,) = keys
            single_owner.append(
                {
                    "file": filename,
                    "owner": owner,
                    "changes": contributors[owner].files[filename]["changes"],
                }
            )

        single_owner.sort(key=lambda item: (-item["changes"], item["file"]))
        return single_owner

    def _summary(self, contributors: Dict[str, ContributorAccumulator]) -> Dict[str, Any]:
        firsts = [acc.first_commit for acc in contributors.values() if acc.first_commit]
        lasts = [acc.last_commit for acc in contributors.values() if acc.last_commit]
        return {
            "contributors": len(contributors),
            "commits": sum(acc.commits for acc in contributors.values()),
            "additions": sum(acc.additions for acc in contributors.values()),
            "deletions": sum(acc.deletions for acc in contributors.values()),
            "firstCommitDate": _isoformat(min(firsts, key=_sortable_instant))
            if firsts
            else None,
            "lastCommitDate": _isoformat(max(lasts, key=_sortable_instant))
            if lasts
            else None,
            "groupBy": self.config.group_by,
        }


def analyze_commits(
    commits: List[CommitRecord], config: Optional[AnalysisConfig] = None
) -> AnalysisResult:
    """
    Resolve, aggregate and analyze parsed commits with a fresh resolver.
    Pure: the same commits and config always give the same result.
    """
    config = config or AnalysisConfig()
    resolver = build_alias_resolver(config.alias_config, config.similarity_threshold)
    aggregator = ContributorAggregator(config, resolver)
    contributors = aggregator.aggregate(commits)
    return ContributorAnalyzer(config).analyze(commits, contributors, resolver)


def analyze_log(
    log_text: Optional[str], config: Optional[AnalysisConfig] = None
) -> AnalysisResult:
    """Parse log text and analyze it"""
    return analyze_commits(parse_git_log(log_text), config)


# ============================================================================
# PROGRESS REPORTING
# ============================================================================


class ProgressReporter:
    """
    Console progress for CLI runs (colorama colors, tqdm progress bars).
    Writes to stderr so JSON on stdout stays clean.
    """

    def __init__(
        self,
        quiet: bool = False,
        verbose: bool = False,
        use_colors: bool = True,
        stream=None,
    ):
        self.quiet = quiet
        self.verbose = verbose
        self.use_colors = use_colors
        self._stream = stream
        self.start_time = time.time()
        self.stage_times: Dict[str, float] = {}

    @property
    def stream(self):
        return self._stream if self._stream is not None else sys.stderr

    def _colorize(self, text: str, color: str) -> str:
        if self.use_colors:
            return f"{color}{text}{Style.RESET_ALL}"
        return text

    def _emit(self, text: str = ""):
        print(text, file=self.stream)

    def stage_start(self, stage_name: str, message: str = ""):
        """Mark the start of a processing stage"""
        self.stage_times[stage_name] = time.time()
        if self.quiet or not self.verbose:
            return
        self._emit(self._colorize(f"▶ {stage_name}", Fore.BLUE + Style.BRIGHT))
        if message:
            self._emit(f"   {message}")

    def stage_complete(self, stage_name: str, stats: Optional[Dict] = None):
        """Mark completion of a processing stage"""
        if self.quiet:
            return
        elapsed = time.time() - self.stage_times.get(stage_name, time.time())
        if self.verbose:
            self._emit(
                self._colorize(f"✔ {stage_name} ({elapsed:.2f}s)", Fore.GREEN)
            )
            for key, value in (stats or {}).items():
                self._emit(f"   {key}: {value}")

    def create_progress_bar(
        self, total: int, desc: str = "Processing"
    ) -> Optional[tqdm]:
        """Progress bar over commits; None when quiet"""
        if self.quiet:
            return None
        return tqdm(
            total=total,
            desc=desc,
            unit=" commits",
            file=self.stream,
            leave=False,
            disable=total < 1000 and not self.verbose,
        )

    def info(self, message: str):
        if not self.quiet:
            self._emit(f"{self._colorize('ℹ', Fore.BLUE)} {message}")

    def warning(self, message: str):
        if not self.quiet:
            self._emit(f"{self._colorize('⚠', Fore.YELLOW + Style.BRIGHT)} {message}")

    def error(self, message: str):
        """Always shown"""
        self._emit(self._colorize(f"ERROR: {message}", Fore.RED + Style.BRIGHT))

    def success(self, message: str):
        if not self.quiet:
            self._emit(self._colorize(message, Fore.GREEN + Style.BRIGHT))

    def summary(self, stats: Dict[str, Any]):
        """Display final summary"""
        if self.quiet:
            return
        elapsed = time.time() - self.start_time
        separator = self._colorize("=" * 60, Fore.CYAN)

        self._emit(separator)
        self._emit(self._colorize("CONTRIBUTOR STATS SUMMARY", Fore.MAGENTA + Style.BRIGHT))
        self._emit(separator)
        for key, value in stats.items():
            self._emit(f"   {key}: {value}")
        self._emit(self._colorize(f"   Total time: {elapsed:.2f}s", Fore.YELLOW))


# ============================================================================
# CORE RUNNER
# ============================================================================


class ContributorStats:
    """
    One analysis run with progress reporting and diagnostics.
    Every call to run() starts from a fresh parser and resolver.
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        reporter: Optional[ProgressReporter] = None,
    ):
        self.config = config or AnalysisConfig()
        self.reporter = reporter or ProgressReporter(quiet=True)
        self.parser: Optional[GitLogParser] = None
        self.resolver: Optional[AliasResolver] = None
        self.aggregator: Optional[ContributorAggregator] = None
        self.metrics = RunMetrics()
        self.errors: List[str] = []

    def run(self, log_text: Optional[str]) -> AnalysisResult:
        start_time = time.time()
        self.metrics = RunMetrics()

        self.reporter.stage_start("Log Parsing", "Reading commit blocks...")
        self.parser = GitLogParser()
        commits = self.parser.parse(log_text)
        self.reporter.stage_complete(
            "Log Parsing",
            {
                "Commits parsed": f"{len(commits):,}",
                "Lines skipped": self.parser.lines_skipped,
            },
        )

        self.reporter.stage_start("Aggregation", "Resolving identities...")
        self.resolver = build_alias_resolver(
            self.config.alias_config, self.config.similarity_threshold
        )
        self.aggregator = ContributorAggregator(self.config, self.resolver)
        progress_bar = self.reporter.create_progress_bar(
            total=len(commits), desc="Aggregating commits"
        )
        try:
            contributors = self.aggregator.aggregate(commits, progress_bar=progress_bar)
        finally:
            if progress_bar is not None:
                progress_bar.close()
        self.reporter.stage_complete(
            "Aggregation",
            {
                "Canonical identities": len(self.resolver.canonical_identities),
                "Fuzzy merges": self.resolver.fuzzy_merges,
            },
        )

        self.reporter.stage_start("Analysis", "Deriving rankings and activity...")
        result = ContributorAnalyzer(self.config).analyze(
            commits, contributors, self.resolver
        )
        self.reporter.stage_complete("Analysis")

        self.errors = self.parser.errors + self.resolver.errors
        self.metrics.commits_parsed = len(commits)
        self.metrics.lines_skipped = self.parser.lines_skipped
        self.metrics.headers_discarded = self.parser.headers_discarded
        self.metrics.canonical_identities = len(self.resolver.canonical_identities)
        self.metrics.explicit_alias_hits = self.resolver.explicit_hits
        self.metrics.fuzzy_merges = self.resolver.fuzzy_merges
        self.metrics.total_time = time.time() - start_time
        return result


# ============================================================================
# OUTPUT
# ============================================================================


def write_result_json(result: AnalysisResult, output_path: str) -> int:
    """Write the result JSON; returns the number of bytes written"""
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    text = result.to_json()
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(text)
        f.write("\n")
    return len(text.encode("utf-8")) + 1


def print_contributor_table(
    result: AnalysisResult, label_by: str = "name", echo: Callable = click.echo
):
    """Ranked console table plus a totals line"""
    headers = [
        "#",
        "Author" if label_by == "name" else "Email",
        "Commits",
        "+Additions",
        "-Deletions",
        "±Changes",
    ]
    rows = []
    for rank, c in enumerate(result.top_contributors, start=1):
        if label_by == "name":
            label = c["name"] or "(unknown)"
        else:
            label = c["email"] or c["key"] or "(unknown)"
        rows.append(
            [
                str(rank),
                label,
                f"{c['commits']:,}",
                f"{c['added']:,}",
                f"{c['deleted']:,}",
                f"{c['changes']:,}",
            ]
        )

    widths = [
        max([len(h)] + [len(r[i]) for r in rows]) for i, h in enumerate(headers)
    ]

    def fmt(cells: List[str]) -> str:
        return "  ".join(
            cell.ljust(widths[i]) if i == 1 else cell.rjust(widths[i])
            for i, cell in enumerate(cells)
        )

    echo(fmt(headers))
    echo("  ".join("-" * w for w in widths))
    for row in rows:
        echo(fmt(row))

    summary = result.summary
    echo("")
    echo(
        f"Contributors: {summary['contributors']:,} | Commits: {summary['commits']:,} | "
        f"Changes: {summary['additions'] + summary['deletions']:,} "
        f"(+{summary['additions']:,} / -{summary['deletions']:,})"
    )
    if summary["firstCommitDate"] or summary["lastCommitDate"]:
        first = (summary["firstCommitDate"] or "")[:10] or "?"
        last = (summary["lastCommitDate"] or "")[:10] or "?"
        echo(f"Range: {first} -> {last}")


# ============================================================================
# CLI INTERFACE
# ============================================================================


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument(
    "log_file",
    type=click.File("r", encoding="utf-8", errors="replace"),
    default="-",
    required=False,
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False),
    help="Write the analysis JSON to this file",
)
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file path (.yaml or .json)",
)
@click.option(
    "--preset",
    type=click.Choice(sorted(PRESETS)),
    help="Predefined matching strictness",
)
@click.option("--group-by", type=click.Choice(GROUP_BY_CHOICES), help="Identity field")
@click.option(
    "--label-by", type=click.Choice(["name", "email"]), help="Table label column"
)
@click.option(
    "--sort-by",
    type=click.Choice(list(SORT_BY_CHOICES) + sorted(SORT_BY_ALIASES)),
    help="Ranking metric",
)
@click.option(
    "--similarity",
    type=click.FloatRange(0.0, 1.0),
    help="Fuzzy identity merge threshold (default 0.85)",
)
@click.option(
    "--no-fuzzy", is_flag=True, default=None, help="Disable fuzzy identity merging"
)
@click.option(
    "--alias-file",
    type=click.Path(dir_okay=False),
    help=f"Alias configuration (default: ./{ALIAS_FILE_NAME})",
)
@click.option("--top", type=click.IntRange(min=0), help="Limit ranked contributors")
@click.option(
    "--top-files", type=click.IntRange(min=0), help="Files listed per contributor"
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    help="Stdout format (default: table)",
)
@click.option(
    "-q", "--quiet", is_flag=True, default=None, help="Suppress progress output"
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=None,
    help="Show stages, diagnostics and metrics",
)
@click.option("--no-color", is_flag=True, default=None, help="Disable colored output")
@click.version_option(version=VERSION)
def main(log_file, output, config, preset, **kwargs):
    """
    Contributor statistics from a git log dump.

    LOG_FILE is the output of
    git log --numstat --date=iso-strict --pretty=format:---%n%H%x00%an%x00%ae%x00%ad
    ('-' or omitted reads stdin).
    """
    just_fix_windows_console()

    try:
        resolver = ConfigResolver(kwargs, config, preset, os.getcwd())
    except (OSError, ValueError, yaml.YAMLError) as e:
        ProgressReporter(use_colors=not kwargs.get("no_color")).error(
            f"Failed to load configuration: {e}"
        )
        sys.exit(1)

    quiet = resolver.get("quiet", False)
    verbose = resolver.get("verbose", False)
    reporter = ProgressReporter(
        quiet=quiet, verbose=verbose, use_colors=not resolver.get("no_color", False)
    )
    for warning in resolver.warnings:
        reporter.warning(warning)
    if resolver.config_path and verbose:
        reporter.info(f"Configuration: {resolver.config_path}")

    # Aliases: explicit file > inline config > auto-discovered file
    alias_errors: List[str] = []
    alias_path = resolver.get("alias_file")
    if alias_path:
        alias_config = load_alias_config(alias_path, alias_errors)
    elif resolver.get("aliases") is not None:
        alias_config = resolver.get("aliases")
    else:
        alias_path = find_alias_file(os.getcwd())
        alias_config = load_alias_config(alias_path, alias_errors)
    for message in alias_errors:
        reporter.warning(message)
    if alias_path and alias_config is not None and verbose:
        reporter.info(f"Alias file: {alias_path}")

    similarity = resolver.get("similarity", DEFAULT_SIMILARITY_THRESHOLD)
    if resolver.get("no_fuzzy", False):
        similarity = None

    try:
        analysis_config = AnalysisConfig.from_mapping(
            {
                "group_by": resolver.get("group_by", "email"),
                "sort_by": resolver.get("sort_by", "changes"),
                "similarity": similarity,
                "aliases": alias_config,
                "top": resolver.get("top", 0),
                "top_files": resolver.get("top_files", DEFAULT_TOP_FILES),
            }
        )
    except (TypeError, ValueError) as e:
        reporter.error(f"Invalid configuration: {e}")
        sys.exit(1)

    try:
        stats = ContributorStats(analysis_config, reporter)
        result = stats.run(log_file.read())

        if output:
            size = write_result_json(result, output)
            reporter.info(f"Wrote {output} ({size:,} bytes)")

        if resolver.get("output_format", "table") == "json":
            click.echo(result.to_json())
        else:
            print_contributor_table(result, label_by=resolver.get("label_by", "name"))

        if stats.errors:
            reporter.warning(f"{len(stats.errors)} log line(s) or alias entries skipped")
            if verbose:
                for message in stats.errors[:20]:
                    reporter.info(message)

        if verbose:
            reporter.summary(
                {
                    "Total commits": f"{result.total_commits:,}",
                    "Contributors": f"{len(result.contributors):,}",
                    "Single-owner files": f"{len(result.bus_factor['filesSingleOwner']):,}",
                    **{k.replace("_", " ").capitalize(): v for k, v in stats.metrics.to_dict().items()},
                }
            )

    except Exception as e:
        reporter.error(f"Analysis failed: {str(e)}")
        if verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
