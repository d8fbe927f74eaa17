from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ClientSettings:
    api_base_url: str = "http://localhost:3000/api"
    # origin of the web app; share links are built from it
    app_origin: str = "http://localhost:5173"
    page_size: int = 20
    request_timeout: float = 30.0
    max_upload_files: int = 10
    max_upload_size: int = 10 * 1024 * 1024
    log_level: str = "INFO"
    supabase_url: str | None = None
    supabase_key: str | None = None
    supabase_disabled: bool = False

    @classmethod
    def from_env(cls) -> ClientSettings:
        return cls(
            api_base_url=os.getenv("PHOTODESK_API_URL", cls.api_base_url),
            app_origin=os.getenv("PHOTODESK_APP_ORIGIN", cls.app_origin).rstrip("/"),
            page_size=int(os.getenv("PHOTODESK_PAGE_SIZE", str(cls.page_size))),
            request_timeout=float(os.getenv("PHOTODESK_REQUEST_TIMEOUT", str(cls.request_timeout))),
            max_upload_files=int(os.getenv("PHOTODESK_MAX_UPLOAD_FILES", str(cls.max_upload_files))),
            max_upload_size=int(os.getenv("PHOTODESK_MAX_UPLOAD_SIZE", str(cls.max_upload_size))),
            log_level=os.getenv("PHOTODESK_LOG_LEVEL", cls.log_level).upper(),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_key=os.getenv("SUPABASE_ANON_KEY"),
            supabase_disabled=os.getenv("SUPABASE_DISABLED", "0") == "1",
        )
