from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
import os
from functools import lru_cache

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    # Directory of record: statische Liste oder Active Directory
    fleet_hosts: Optional[List[str]] = Field(
        default=None,
        description="Static host entries in the form 'fqdn|product tag'",
    )
    ldap_host: Optional[str] = Field(
        default=None,
        description="Domain controller to enumerate mail servers from (optional)",
    )
    ldap_port: int = Field(default=389, ge=1, le=65535)
    ldap_use_ssl: bool = False
    ldap_bind_dn: str = ""
    ldap_bind_password: str = ""
    ldap_base_dn: str = Field(
        default="",
        description="Search base, usually the configuration naming context",
    )

    # Remote management (WinRM), gemeinsame Credentials für alle Hosts
    winrm_username: Optional[str] = None
    winrm_password: Optional[str] = None
    winrm_transport: str = Field(
        default="ntlm",
        description="pywinrm transport, e.g. ntlm, kerberos or credssp",
    )
    winrm_use_ssl: bool = False

    # Timeouts
    ping_timeout_seconds: int = Field(default=1, ge=1)
    dns_timeout_seconds: float = Field(default=5.0, gt=0)
    remote_timeout_seconds: int = Field(default=30, ge=1)

    # Counter localization and compliance rules
    perflib_reference_language: str = Field(
        default="009",
        description="Perflib key of the canonical counter language (009 = English)",
    )
    newer_generation_pattern: str = Field(
        default=r"Version 15\.2",
        description="Regex matched against the product tag to select the newer rule set",
    )
    cpu_alert_percent: float = Field(default=40.0, ge=0)
    avail_mem_alert_percent: float = Field(default=25.0, ge=0, le=100)

    max_workers: int = Field(default=1, ge=1)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            allowed = ", ".join(LOG_LEVELS)
            raise ValueError(f"log level must be one of {allowed}, got {value!r}")
        return level

    @classmethod
    def from_env(cls) -> "Settings":
        raw_hosts = os.getenv("FLEET_HOSTS", "")
        fleet_hosts = [h.strip() for h in raw_hosts.split(",") if h.strip()] or None

        return cls(
            fleet_hosts=fleet_hosts,
            ldap_host=os.getenv("LDAP_HOST") or None,
            ldap_port=int(os.getenv("LDAP_PORT", "389")),
            ldap_use_ssl=_env_bool("LDAP_USE_SSL"),
            ldap_bind_dn=os.getenv("LDAP_BIND_DN", ""),
            ldap_bind_password=os.getenv("LDAP_BIND_PASSWORD", ""),
            ldap_base_dn=os.getenv("LDAP_BASE_DN", ""),
            winrm_username=os.getenv("WINRM_USERNAME"),
            winrm_password=os.getenv("WINRM_PASSWORD"),
            winrm_transport=os.getenv("WINRM_TRANSPORT", "ntlm"),
            winrm_use_ssl=_env_bool("WINRM_USE_SSL"),
            ping_timeout_seconds=int(os.getenv("PING_TIMEOUT_SECONDS", "1")),
            dns_timeout_seconds=float(os.getenv("DNS_TIMEOUT_SECONDS", "5")),
            remote_timeout_seconds=int(os.getenv("REMOTE_TIMEOUT_SECONDS", "30")),
            perflib_reference_language=os.getenv("PERFLIB_REFERENCE_LANGUAGE", "009"),
            newer_generation_pattern=os.getenv(
                "NEWER_GENERATION_PATTERN", r"Version 15\.2"
            ),
            cpu_alert_percent=float(os.getenv("CPU_ALERT_PERCENT", "40")),
            avail_mem_alert_percent=float(os.getenv("AVAIL_MEM_ALERT_PERCENT", "25")),
            max_workers=int(os.getenv("MAX_WORKERS", "1")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
