from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str
    
    REDIS_URL: str
    
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours
    
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB
    
    RATE_LIMIT: int = 100
    RATE_LIMIT_WINDOW: int = 600  # 10 minutes
    
    IDEMPOTENCY_TTL: int = 300  # 5 minutes
    
    LEAD_PAGE_SIZE: int = 1000
    MANUAL_LEAD_SOURCE: str = "Manual Add"
    
    TELEPHONY_API_URL: str = "https://api.telnyx.com"
    TELEPHONY_API_KEY: str = ""
    TELEPHONY_REPORT_PATH: str = "/v2/legacy_reporting/batch_detail_records/voice"
    TELEPHONY_TIMEOUT: int = 30
    REPORT_POLL_INTERVAL: float = 2.0
    REPORT_POLL_ATTEMPTS: int = 15
    
    SIP_DOMAIN: str = "sip.telnyx.com"
    SIP_USERNAME: str = ""
    SIP_PASSWORD: str = ""
    SIP_DISPLAY_NAME: str = ""
    SIP_AUTO_RECORD: bool = False
    
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_BACKEND: str = "redis://localhost:6379/2"
    CALL_SYNC_INTERVAL: int = 900  # 15 minutes
    
    COMPANY_NAME: str = "DispatchDesk Logistics"
    
    API_TITLE: str = "DispatchDesk"
    API_DESCRIPTION: str = "Dispatcher CRM: lead queue, call logging, pipeline and fleet tracking"
    API_VERSION: str = "1.0.0"
    
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
