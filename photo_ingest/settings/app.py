"""
應用程式設定

使用 Pydantic BaseSettings 管理環境變數和配置
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from photo_ingest.data_model import ProcessingOptions


class AppSettings(BaseSettings):
    """
    應用程式設定

    從環境變數 (PHOTO_INGEST_*) 和 .env 文件讀取設定

    Attributes:
        log_level: 日誌級別 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        max_width: 預設最大寬度
        max_height: 預設最大高度
        quality: 預設起始品質
        max_file_size_mb: 預設檔案大小上限 (MB)
        max_workers: 批次處理的並行數
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PHOTO_INGEST_",
        case_sensitive=False,
    )

    # 日誌設定
    log_level: str = "INFO"

    # 圖片處理設定
    max_width: int = Field(default=1200, gt=0)
    max_height: int = Field(default=1600, gt=0)
    quality: float = Field(default=0.85, gt=0.0, le=1.0)
    max_file_size_mb: float = Field(default=10.0, gt=0.0)

    # 批次設定
    max_workers: int = Field(default=1, ge=1)

    def to_processing_options(self, **overrides: object) -> ProcessingOptions:
        """以設定值為預設，合併覆寫後建立處理設定"""
        base = {
            "max_width": self.max_width,
            "max_height": self.max_height,
            "quality": self.quality,
            "max_file_size_mb": self.max_file_size_mb,
        }
        base.update({key: value for key, value in overrides.items() if value is not None})
        return ProcessingOptions.merged(base)


# 創建全局設定實例
settings = AppSettings()
