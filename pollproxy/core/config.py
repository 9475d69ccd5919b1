import os
from typing import Dict

_DEFAULT_COOKIE = (
    "cf_clearance=33iwlz68jGBBlzm6A8cn0WQ6jrgB5nrmM9Di8AQS5Q8-1749432031-1.2.1.1-"
    "axCkq9bFiYuQ.2nj6DLUZeJ6jMjqP53fWXdB9RPaElpVFPXJhadNVkJLJYjU12KU_yIsSQoX4."
    "tvY0GD1vbUzOnqNbT9O5_CdfZpaeTo2fF9G_tBl.aIHt2jEd4FOjnBtZu36jpSCL4kSNlgYQ_FHk1vI4VGn3"
    "Is1tMItCYrzI7gCqxKLNDb0zYqowQd29e2M8s5fLQdVUrJ0jVlzHFT1oShWi3oGvDL2NlbWmSElGq_"
    "OBKyh6Elr9QMVELLxkxANkTZM3_M7KhphifWHCkiUDpL4iCUXkOYPa9nT72IeqXIrksVGopmlRVcgTM9"
    "AvfWfo.7lqggr35siaVmygaD6hEyijajra4HI_qLMI0_qGc; sidebar:state=true"
)

class Settings:
    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))

    # Upstream
    UPSTREAM_URL: str = os.getenv("UPSTREAM_URL", "https://rugplay.com/api/coin/HTTP?timeframe=1m")
    UPSTREAM_REFERER: str = os.getenv("UPSTREAM_REFERER", "https://rugplay.com/coin/HTTP")
    # Pre-captured session cookie; expires upstream and has to be refreshed by hand
    UPSTREAM_COOKIE: str = os.getenv("UPSTREAM_COOKIE", _DEFAULT_COOKIE)
    USER_AGENT: str = os.getenv(
        "USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:139.0) Gecko/20100101 Firefox/139.0",
    )

    # Polling
    POLL_INTERVAL_SECONDS: float = float(os.getenv("POLL_INTERVAL_SECONDS", "60"))
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "30"))

    # Diagnostics
    RAW_PREVIEW_CHARS: int = int(os.getenv("RAW_PREVIEW_CHARS", "200"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info")
    LOG_JSON: bool = os.getenv("LOG_JSON", "1").lower() in ("1", "true", "yes")

    def upstream_headers(self) -> Dict[str, str]:
        """Fixed outbound header set, passed to the upstream unchanged"""
        return {
            "User-Agent": self.USER_AGENT,
            "Accept": "*/*",
            "Accept-Language": "en-GB,en;q=0.5",
            "Accept-Encoding": "gzip, deflate, br, zstd",
            "Referer": self.UPSTREAM_REFERER,
            "Connection": "keep-alive",
            "Cookie": self.UPSTREAM_COOKIE,
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Site": "same-origin",
            "Priority": "u=4",
            "TE": "trailers",
        }

settings = Settings()
