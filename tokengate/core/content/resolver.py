"""Filesystem content resolution for authorized pages.

Conventions for a page ``p`` under the content root ``R``, first match wins:

1. ``R/p/p.html``
2. ``R/p/index.html``
3. ``R/protected-content/p.html``
4. ``R/../p.html``

Pages configured as external projects resolve to a redirect instead.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

import aiofiles
import aiofiles.os

from tokengate.core.models import normalize_page
from tokengate.infrastructure.logging import get_logger

logger = get_logger(__name__)

LEGACY_CONTENT_DIR = "protected-content"

_HTML_SUFFIX = re.compile(r"\.html$", re.IGNORECASE)


class ContentConfigurationError(Exception):
    """An external project is listed without a target URL"""
    pass


@dataclass(frozen=True)
class Content:
    page: str
    html: str
    source: Path


@dataclass(frozen=True)
class ExternalRedirect:
    page: str
    url: str


@dataclass(frozen=True)
class ProjectInfo:
    id: str
    name: str
    description: str
    html_path: str


ResolvedContent = Union[Content, ExternalRedirect]


def format_project_name(project_id: str) -> str:
    return project_id[:1].upper() + project_id[1:]


def is_safe_page_id(page: str) -> bool:
    """Reject identifiers that could escape the content root"""
    if not page or page.startswith("."):
        return False
    return "/" not in page and "\\" not in page and "\x00" not in page


class ContentResolver:
    """Maps authorized page identifiers to HTML content"""

    IGNORED_DIRECTORIES = frozenset({
        "node_modules", "public", LEGACY_CONTENT_DIR,
        "tokengate", "tests", "logs", "__pycache__",
    })

    def __init__(self, root: Path, external_projects: Optional[Mapping[str, str]] = None):
        self.root = Path(root)
        self._external: Dict[str, str] = {
            normalize_page(page): url for page, url in (external_projects or {}).items()
        }

    def candidate_paths(self, page: str) -> List[Path]:
        name = _HTML_SUFFIX.sub("", page)
        return [
            self.root / name / f"{name}.html",
            self.root / name / "index.html",
            self.root / LEGACY_CONTENT_DIR / f"{name}.html",
            self.root / ".." / f"{name}.html",
        ]

    async def resolve(self, page: str) -> Optional[ResolvedContent]:
        """Resolve a page to content or an external redirect.

        Returns None when nothing is found or the file is not valid UTF-8.
        Raises ContentConfigurationError for an external project without a
        URL; other read failures propagate as OSError.
        """
        normalized = normalize_page(page)
        if normalized in self._external:
            url = self._external[normalized]
            if not url:
                logger.error("external_project_url_missing", page=normalized)
                raise ContentConfigurationError(f"No URL configured for external project '{normalized}'")
            return ExternalRedirect(page=normalized, url=url)

        if not is_safe_page_id(page):
            logger.warning("content_page_rejected", page=page)
            return None

        for path in self.candidate_paths(page):
            if await aiofiles.os.path.isfile(path):
                try:
                    async with aiofiles.open(path, "r", encoding="utf-8") as f:
                        html = await f.read()
                except UnicodeDecodeError as e:
                    logger.warning(
                        "content_decode_failed",
                        page=normalized,
                        source=str(path),
                        error=str(e),
                    )
                    return None
                logger.debug("content_resolved", page=normalized, source=str(path))
                return Content(page=normalized, html=html, source=path)

        logger.warning("content_not_found", page=normalized)
        return None

    def discover(self) -> List[ProjectInfo]:
        """Scan the content root for project folders with an HTML entry point"""
        projects: List[ProjectInfo] = []
        if not self.root.is_dir():
            logger.warning("content_root_missing", root=str(self.root))
            return projects

        for entry in sorted(self.root.iterdir()):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            if entry.name in self.IGNORED_DIRECTORIES:
                continue

            try:
                if (entry / f"{entry.name}.html").is_file():
                    html_path = f"{entry.name}/{entry.name}.html"
                elif (entry / "index.html").is_file():
                    html_path = f"{entry.name}/index.html"
                else:
                    continue
            except OSError as e:
                logger.warning("project_scan_failed", directory=entry.name, error=str(e))
                continue

            name = format_project_name(entry.name)
            projects.append(ProjectInfo(
                id=entry.name,
                name=name,
                description=f"Project {name}",
                html_path=html_path,
            ))
        return projects
