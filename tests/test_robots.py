# File: tests/test_robots.py
"""robots.txt parsing and matching."""
import pytest

from doc_scout.crawler.robots import RobotsTxtRules, robots_url_for

ROBOTS = """
# comment line
User-agent: TestAgent
Disallow: /private
Allow: /private/open
Crawl-delay: 2

User-agent: *
Disallow: /tmp/
Disallow: /*.json$
"""


@pytest.fixture()
def rules() -> RobotsTxtRules:
    return RobotsTxtRules(ROBOTS)


def test_robots_url_for():
    assert robots_url_for("https://docs.example.com:8443/a/b?x=1") == "https://docs.example.com:8443/robots.txt"


def test_named_agent_group(rules):
    assert not rules.can_fetch("TestAgent/1.0", "/private/notes")
    assert rules.can_fetch("TestAgent/1.0", "/private/open/page")
    # the named group replaces the wildcard group
    assert rules.can_fetch("TestAgent/1.0", "/tmp/file")
    assert rules.crawl_delay("TestAgent/1.0") == 2.0


def test_wildcard_group(rules):
    assert not rules.can_fetch("OtherBot", "/tmp/file")
    assert not rules.can_fetch("OtherBot", "/data/export.json")
    assert rules.can_fetch("OtherBot", "/data/export.json?x=1")
    assert rules.can_fetch("OtherBot", "/private/notes")
    assert rules.crawl_delay("OtherBot") is None


def test_empty_disallow_allows_everything():
    rules = RobotsTxtRules("User-agent: *\nDisallow:\n")
    assert rules.can_fetch("AnyBot", "/anything")
    assert rules.disallows_site(["AnyBot", "*"]) is None


def test_empty_group_does_not_swallow_next_agent():
    rules = RobotsTxtRules("User-agent: *\nDisallow:\n\nUser-agent: BadBot\nDisallow: /\n")
    assert rules.can_fetch("GoodBot", "/page")
    assert not rules.can_fetch("BadBot", "/page")


def test_consecutive_agents_share_a_group():
    rules = RobotsTxtRules("User-agent: a-bot\nUser-agent: b-bot\nDisallow: /x\n")
    assert not rules.can_fetch("a-bot", "/x")
    assert not rules.can_fetch("b-bot", "/x")
    assert rules.can_fetch("c-bot", "/x")


def test_disallows_site():
    rules = RobotsTxtRules("User-agent: *\nDisallow: /\n")
    assert rules.disallows_site(["TestAgent/1.0", "*"]) == "TestAgent/1.0"

    specific = RobotsTxtRules("User-agent: *\nDisallow: /\n\nUser-agent: TestAgent\nAllow: /\n")
    assert specific.disallows_site(["TestAgent/1.0"]) is None
    assert specific.disallows_site(["TestAgent/1.0", "*"]) == "*"


def test_no_rules_allows_all():
    rules = RobotsTxtRules("")
    assert rules.can_fetch("x", "/")
    assert rules.disallows_site(["*"]) is None
