import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # Database settings
    database_file: str = os.getenv("LIBRARY_DB_FILE", "library.db")

    # Union catalog (BnF SRU) settings
    catalog_base_url: str = os.getenv(
        "CATALOG_BASE_URL",
        "https://catalogue.bnf.fr/api/SRU?version=1.2&operation=searchRetrieve&query=",
    )
    catalog_timeout: float = float(os.getenv("CATALOG_TIMEOUT", "10"))
    catalog_page_size: int = int(os.getenv("CATALOG_PAGE_SIZE", "500"))
    catalog_user_agent: str = os.getenv("CATALOG_USER_AGENT", "cybooks/1.0 (+https://catalogue.bnf.fr)")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "CY-Books")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "WARNING").upper()
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")


settings = Settings()
