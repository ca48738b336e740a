"""Runtime configuration model."""

from __future__ import annotations

from dataclasses import dataclass

from .validation import validate_runtime_constraints

# Several municipal hosts answer only to browser user agents.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
DEFAULT_REQUEST_TIMEOUT = 15.0
DEFAULT_MUNICIPALITY_TIMEOUT = 20.0
DEFAULT_SEARCH_TIMEOUT = 10.0
DEFAULT_CRAWL_ROOT_TIMEOUT = 8.0
DEFAULT_CRAWL_PAGE_TIMEOUT = 5.0
DEFAULT_WORKERS = 5
DEFAULT_MAX_CANDIDATE_URLS = 10
DEFAULT_MAX_BLOCK_CHARS = 1200
DEFAULT_MAX_REDIRECTS = 5


@dataclass(frozen=True)
class FinderConfig:
    """Validated configuration shared by adapters, crawler and orchestrator."""

    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    municipality_timeout: float = DEFAULT_MUNICIPALITY_TIMEOUT
    search_timeout: float = DEFAULT_SEARCH_TIMEOUT
    crawl_root_timeout: float = DEFAULT_CRAWL_ROOT_TIMEOUT
    crawl_page_timeout: float = DEFAULT_CRAWL_PAGE_TIMEOUT
    # Government hosts often serve broken certificate chains.
    verify_tls: bool = False
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    workers: int = DEFAULT_WORKERS
    max_candidate_urls: int = DEFAULT_MAX_CANDIDATE_URLS
    max_block_chars: int = DEFAULT_MAX_BLOCK_CHARS
    demo_mode: bool = False
    check_mx: bool = False
    serpapi_key: str | None = None
    show_progress: bool = True

    def __post_init__(self) -> None:
        validate_runtime_constraints(
            workers=self.workers,
            timeouts={
                "request_timeout": self.request_timeout,
                "municipality_timeout": self.municipality_timeout,
                "search_timeout": self.search_timeout,
                "crawl_root_timeout": self.crawl_root_timeout,
                "crawl_page_timeout": self.crawl_page_timeout,
            },
            max_candidate_urls=self.max_candidate_urls,
            max_block_chars=self.max_block_chars,
        )
