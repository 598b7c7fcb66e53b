"""Centralized branding constants, single source of truth for version."""


class AppBranding:
    """Application identity constants."""

    APP_NAME = "NvUpdater"
    PUBLISHER = "NvUpdater"
    VERSION = "1.0.0"

    # NVIDIA's CDN refuses requests without a browser-like user agent
    BROWSER_USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:115.0) "
        "Gecko/20100101 Firefox/115.0"
    )

    @classmethod
    def window_title(cls) -> str:
        return f"{cls.APP_NAME}  v{cls.VERSION}"
