from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin operations like deactivating profiles

    # AWS S3 (will read from uppercase env vars automatically)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Evidence storage
    evidence_bucket: str = "evidence-files"  # Supabase Storage bucket when S3 is not configured
    max_evidence_file_size: int = 50 * 1024 * 1024  # 50MB per file
    max_inspection_evidence_size: int = 1024 * 1024 * 1024  # 1GB per inspection

    # Workflow
    max_rejections: int = 2  # rejections allowed before escalation is required
    max_team_members: int = 10
    # roles a caller may pick at /auth/register; set to "INSPECTOR" to keep elevated roles admin-assigned
    self_register_roles: str = "INSPECTOR,PROJECT_MANAGER,EXECUTIVE"

    # App
    app_name: str = "primoinspect-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def s3_configured(self) -> bool:
        return all([self.aws_access_key_id, self.aws_secret_access_key, self.s3_bucket_name])

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_self_register_roles_list(self) -> List[str]:
        return [r.strip().upper() for r in self.self_register_roles.split(",") if r.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
