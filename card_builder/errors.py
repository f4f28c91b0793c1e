"""
Exception types raised by card_builder.

Configuration problems for products/variants are reported as results
(see ``card_builder.spec.catalog.PrintSpecResult``), preflight problems are
collected into a ``PreflightResult``. Everything here is raised.
"""


class CardBuilderError(Exception):
    """Base class for all card_builder errors"""


class GeometryError(CardBuilderError, ValueError):
    """A unit or geometry invariant was violated by the caller (bad DPI, negative size, diagonal fold...)"""


class SideNotFoundError(CardBuilderError, KeyError):
    """Requested side id is not part of the print spec"""

    def __init__(self, side_id: str, available=()):
        self.side_id = side_id
        self.available = tuple(available)
        super().__init__(f"Unknown side '{side_id}'. Available: {list(self.available)}")

    def __str__(self) -> str:
        return self.args[0]


class PageNotFoundError(CardBuilderError, KeyError):
    """Requested page id is not part of the design document"""

    def __init__(self, page_id: str, available=()):
        self.page_id = page_id
        self.available = tuple(available)
        super().__init__(f"Page {page_id} not found in design. Available: {list(self.available)}")

    def __str__(self) -> str:
        return self.args[0]


class PreflightFailedError(CardBuilderError):
    """Export refused because preflight reported blocking errors"""

    def __init__(self, result):
        self.result = result
        super().__init__(f"Preflight check failed with {len(result.errors)} error(s)")


class AssetFetchError(CardBuilderError):
    """Image bytes could not be fetched for an asset reference"""


class RenderCancelledError(CardBuilderError):
    """Export was cancelled by the caller; partial output was discarded"""
