"""robots.txt parsing and path checks for the URL extractor.

Only the directives the crawler acts on are read: ``User-agent``,
``Disallow``, ``Allow`` and ``Crawl-delay``.  Rules for the most specific
matching user agent are used, falling back to the ``*`` group.  Among the
rules matching a path the longest pattern wins, and ``Allow`` wins a tie.
An empty ``Disallow`` value allows everything.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache


@dataclass
class RobotsRules:
    """The rule set that applies to one user agent."""

    allow: list[str] = field(default_factory=list)
    disallow: list[str] = field(default_factory=list)
    crawl_delay: float | None = None

    def is_allowed(self, path: str) -> bool:
        """Return ``True`` if *path* (including any query string) may be fetched."""
        path = path or "/"
        best_len = -1
        allowed = True
        for pattern in self.disallow:
            if _matches(pattern, path) and len(pattern) > best_len:
                best_len = len(pattern)
                allowed = False
        for pattern in self.allow:
            if _matches(pattern, path) and len(pattern) >= best_len:
                best_len = len(pattern)
                allowed = True
        return allowed


@lru_cache(maxsize=512)
def _pattern_regex(pattern: str) -> re.Pattern[str]:
    anchored = pattern.endswith("$")
    body = pattern[:-1] if anchored else pattern
    regex = ".*".join(re.escape(part) for part in body.split("*"))
    return re.compile(regex + ("$" if anchored else ""))


def _matches(pattern: str, path: str) -> bool:
    return _pattern_regex(pattern).match(path) is not None


def parse_robots(text: str, user_agent: str) -> RobotsRules:
    """Parse robots.txt *text* and return the rules for *user_agent*.

    Groups are consecutive ``User-agent`` lines followed by rule lines.
    A group whose agent token appears in *user_agent* (case-insensitive)
    beats the wildcard group; among several, the longest token wins.
    """
    groups: list[tuple[list[str], RobotsRules]] = []
    agents: list[str] = []
    rules: RobotsRules | None = None
    in_rules = False

    for raw_line in text.splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, value = (part.strip() for part in line.split(":", 1))
        key = key.lower()

        if key == "user-agent":
            if in_rules or rules is None:
                agents = []
                rules = RobotsRules()
                groups.append((agents, rules))
                in_rules = False
            agents.append(value.lower())
            continue

        if rules is None:
            continue
        in_rules = True
        if key == "disallow":
            if value:
                rules.disallow.append(value)
        elif key == "allow":
            if value:
                rules.allow.append(value)
        elif key == "crawl-delay":
            try:
                rules.crawl_delay = float(value)
            except ValueError:
                continue

    ua = user_agent.lower()
    best: RobotsRules | None = None
    best_len = -1
    wildcard: RobotsRules | None = None
    for group_agents, group_rules in groups:
        for agent in group_agents:
            if agent == "*":
                wildcard = wildcard or group_rules
            elif agent in ua and len(agent) > best_len:
                best, best_len = group_rules, len(agent)

    return best or wildcard or RobotsRules()
