"""
Exclude Pattern Matcher Module

Decides whether a document path is excluded from highlight scanning by a
multi-line block of user-supplied rules.
"""

import fnmatch
import logging

logger = logging.getLogger(__name__)

_WILDCARD_CHARS = ("*", "?", "[")


class ExcludePatternMatcher:
    """
    Match document paths against exclude rules.

    Each non-blank line of the rules text is one rule. Lines starting with
    '#' are comments. A rule excludes a path when it is:
    - the exact path
    - a directory prefix ("drafts/" or "drafts" excludes "drafts/a.md")
    - a glob ("*.excalidraw.md", "archive/**"); a glob without '/' is also
      tried against the file name alone
    Matching is case-sensitive.
    """

    @staticmethod
    def parse_rules(rules_text: str | None) -> list[str]:
        if not rules_text:
            return []
        rules = []
        for line in rules_text.splitlines():
            rule = line.strip()
            if rule and not rule.startswith("#"):
                rules.append(rule)
        return rules

    @staticmethod
    def matches(path: str, rule: str) -> bool:
        if path == rule:
            return True

        if rule.endswith("/"):
            if path.startswith(rule):
                return True
        elif path.startswith(rule + "/"):
            return True

        if any(ch in rule for ch in _WILDCARD_CHARS):
            if fnmatch.fnmatchcase(path, rule):
                return True
            if "/" not in rule:
                basename = path.rsplit("/", 1)[-1]
                return fnmatch.fnmatchcase(basename, rule)

        return False

    @classmethod
    def should_exclude(cls, path: str, rules_text: str | None) -> bool:
        """
        Check a path against every rule.

        Args:
            path: Document path relative to the vault root
            rules_text: Multi-line exclude rules, may be empty or None

        Returns:
            bool: True if any rule matches
        """
        for rule in cls.parse_rules(rules_text):
            if cls.matches(path, rule):
                logger.debug(f"Path {path} excluded by rule '{rule}'")
                return True
        return False


def should_process_document(path: str, rules_text: str | None) -> bool:
    """True if the document takes part in highlight extraction"""
    return not ExcludePatternMatcher.should_exclude(path, rules_text)
