class Logger:
    """Per-page hook run by the capture loop once the page is ready."""

    async def init_on_page(self, page, url) -> None:
        """Called after the page is opened and before navigation."""

    async def log(self, page, url, environment) -> None:
        """Record whatever this logger collects for the loaded page."""

    def write_logs(self) -> None:
        """Flush collected records once every page has been visited."""
