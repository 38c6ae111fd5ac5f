"""Tests for content resolution and project discovery"""

import pytest

from tokengate.core.content import (
    Content,
    ContentConfigurationError,
    ContentResolver,
    ExternalRedirect,
)
from tokengate.core.content.resolver import format_project_name, is_safe_page_id


@pytest.fixture
def resolver(content_root):
    return ContentResolver(
        content_root,
        {"Partner.html": "https://partner.example.com/app", "broken": ""},
    )


class TestResolve:
    """Lookup conventions, first match wins"""

    async def test_named_file_in_project_directory(self, resolver, content_root):
        result = await resolver.resolve("report")

        assert isinstance(result, Content)
        assert result.html == "<h1>Quarterly report</h1>"
        assert result.source == content_root / "report" / "report.html"

    async def test_index_file_fallback(self, resolver):
        result = await resolver.resolve("dash")

        assert result.html == "<h1>Dashboard</h1>"

    async def test_named_file_preferred_over_index(self, resolver, content_root):
        (content_root / "report" / "index.html").write_text("index")

        result = await resolver.resolve("report")

        assert result.html == "<h1>Quarterly report</h1>"

    async def test_protected_content_directory(self, resolver):
        result = await resolver.resolve("legacy")

        assert result.html == "<h1>Legacy page</h1>"

    async def test_parent_directory_fallback(self, tmp_path):
        root = tmp_path / "site"
        root.mkdir()
        (tmp_path / "outside.html").write_text("parent")

        result = await ContentResolver(root).resolve("outside")

        assert result.html == "parent"

    async def test_html_suffix_is_stripped(self, resolver):
        result = await resolver.resolve("report.html")

        assert isinstance(result, Content)
        assert result.page == "report"

    async def test_missing_page_returns_none(self, resolver):
        assert await resolver.resolve("empty") is None
        assert await resolver.resolve("nowhere") is None

    async def test_non_utf8_file_returns_none(self, resolver, content_root):
        (content_root / "latin").mkdir()
        (content_root / "latin" / "index.html").write_bytes(b"<p>caf\xe9</p>")

        assert await resolver.resolve("latin") is None

    @pytest.mark.parametrize("page", ["../secret", "..", ".env", "a/b", "a\\b", ""])
    async def test_unsafe_identifiers_are_rejected(self, resolver, page):
        assert await resolver.resolve(page) is None


class TestExternalProjects:
    """Pages served from an external URL"""

    async def test_external_project_redirects(self, resolver):
        result = await resolver.resolve("partner")

        assert result == ExternalRedirect(page="partner", url="https://partner.example.com/app")

    async def test_external_lookup_is_normalized(self, resolver):
        result = await resolver.resolve("PARTNER.html")

        assert isinstance(result, ExternalRedirect)

    async def test_missing_url_is_configuration_error(self, resolver):
        with pytest.raises(ContentConfigurationError):
            await resolver.resolve("broken")


class TestDiscover:
    """Content project discovery"""

    def test_lists_project_directories(self, resolver):
        projects = {p.id: p for p in resolver.discover()}

        assert set(projects) == {"dash", "report"}
        assert projects["report"].html_path == "report/report.html"
        assert projects["dash"].html_path == "dash/index.html"
        assert projects["report"].name == "Report"
        assert projects["report"].description == "Project Report"

    def test_skips_hidden_and_ignored_directories(self, resolver, content_root):
        (content_root / ".git").mkdir()
        (content_root / ".git" / "index.html").write_text("x")
        (content_root / "tests").mkdir()
        (content_root / "tests" / "tests.html").write_text("x")

        ids = [p.id for p in resolver.discover()]

        assert ".git" not in ids
        assert "tests" not in ids
        assert "node_modules" not in ids
        assert "protected-content" not in ids

    def test_missing_root_yields_nothing(self, tmp_path):
        assert ContentResolver(tmp_path / "absent").discover() == []


def test_format_project_name():
    assert format_project_name("dash") == "Dash"
    assert format_project_name("") == ""


def test_is_safe_page_id():
    assert is_safe_page_id("report") is True
    assert is_safe_page_id("report.html") is True
    assert is_safe_page_id("../report") is False
