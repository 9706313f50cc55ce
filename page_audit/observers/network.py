"""Record page requests and verify that lazy bundles stay unloaded."""

import logging
import re
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field

from yarl import URL

from page_audit.models.events import ObservedRequest

log = logging.getLogger(__name__)

SCRIPT_EXTENSIONS = (".js", ".mjs")

# Build hashes look like ``abc123`` or ``BxYz12_q``: at least six characters
# with a digit or an uppercase letter, so plain words such as ``charts`` stay.
_HASH_SUFFIX = re.compile(r"[.-](?=[a-z_]*[0-9A-Z])[A-Za-z0-9_]{6,}$")


@dataclass(frozen=True, kw_only=True)
class NetworkSummary:
    """Classification of the scripts loaded during navigation."""

    loaded_bundle_names: frozenset[str] = frozenset()
    violations: frozenset[str] = frozenset()
    script_urls: Sequence[str] = field(default_factory=tuple)
    failed_requests: Sequence[ObservedRequest] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "NetworkSummary":
        """Summary for runs that skip the network check."""
        return cls()


def is_script(request: ObservedRequest) -> bool:
    """Whether the request loads a JavaScript bundle."""
    if request.resource_kind == "script":
        return True
    return URL(request.url).path.endswith(SCRIPT_EXTENSIONS)


def bundle_name(url: str) -> str:
    """Derive the bundle name from a script URL.

    ``/assets/vendor-charts.abc123.js`` and ``/assets/vendor-charts-Bx12Yz.js``
    both map to ``vendor-charts``.
    """
    name = URL(url).name
    for extension in SCRIPT_EXTENSIONS:
        if name.endswith(extension):
            name = name[: -len(extension)]
            break
    return _HASH_SUFFIX.sub("", name)


def classify_requests(
    requests: Sequence[ObservedRequest],
    expected_absent_bundles: Collection[str],
    failed_requests: Sequence[ObservedRequest] = (),
) -> NetworkSummary:
    """Classify observed requests against bundles that must not load.

    A bundle is a violation when its name is a case-sensitive substring of
    any observed script URL.
    """
    script_urls = tuple(r.url for r in requests if is_script(r))
    violations = frozenset(
        name
        for name in expected_absent_bundles
        if any(name in url for url in script_urls)
    )
    return NetworkSummary(
        loaded_bundle_names=frozenset(bundle_name(url) for url in script_urls),
        violations=violations,
        script_urls=script_urls,
        failed_requests=tuple(failed_requests),
    )


class NetworkObserver:
    """Append-only log of the requests issued during a browser session.

    ``record`` and ``record_failure`` are registered as subscription
    handlers before navigation; the log is read only after ``freeze``.
    """

    def __init__(self, origin: str | None = None) -> None:
        self.origin = origin
        self._origin = URL(origin).origin() if origin is not None else None
        self._requests: list[ObservedRequest] = []
        self._failed: list[ObservedRequest] = []
        self._frozen = False

    @property
    def requests(self) -> Sequence[ObservedRequest]:
        """Requests recorded so far, in arrival order."""
        return tuple(self._requests)

    def record(self, request: ObservedRequest) -> None:
        """Append an outgoing request."""
        if not self._accepts(request):
            return
        self._requests.append(request)
        if is_script(request):
            log.info("Loaded script %s", URL(request.url).name)

    def record_failure(self, request: ObservedRequest) -> None:
        """Append a request that failed to load."""
        if not self._accepts(request):
            return
        self._failed.append(request)
        log.warning("Failed request %s: %s", request.url, request.failure)

    def freeze(self) -> None:
        """Close the log; later events are dropped."""
        self._frozen = True

    def classify(self, expected_absent_bundles: Collection[str]) -> NetworkSummary:
        """Classify the frozen log, see ``classify_requests``."""
        if not self._frozen:
            raise RuntimeError("Network log must be frozen before classification")
        return classify_requests(self._requests, expected_absent_bundles, self._failed)

    def _accepts(self, request: ObservedRequest) -> bool:
        if self._frozen:
            log.debug("Ignoring request after navigation settled: %s", request.url)
            return False
        if self._origin is None:
            return True
        url = URL(request.url)
        return url.absolute and url.origin() == self._origin
