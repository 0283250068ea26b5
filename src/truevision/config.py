"""Configuration module for truevision."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from truevision.encoder import SaveMode
from truevision.logger import VerboseLevel
from truevision.rle import RLEEncoder


class ConfigError(Exception):
    """設定ファイル読み込みエラー"""

    pass


SAVE_MODE_NAMES: dict[str, SaveMode] = {
    "raw-rgb": SaveMode.RAW_RGB,
    "rle-rgb": SaveMode.RLE_RGB,
    "raw-palette": SaveMode.RAW_PALETTE,
    "rle-palette": SaveMode.RLE_PALETTE,
}
"""設定ファイルやCLIで使用する保存モード名"""


@dataclass(frozen=True)
class DecodeConfig:
    """読み込み設定"""

    force_alpha: bool = False


@dataclass(frozen=True)
class EncodeConfig:
    """書き出し設定"""

    mode: SaveMode = SaveMode.RLE_RGB
    rle_capacity: int = RLEEncoder.DEFAULT_CAPACITY


@dataclass(frozen=True)
class LoggingConfig:
    """ログ設定"""

    verbose: VerboseLevel = VerboseLevel.NORMAL
    log_file: Path | None = None


@dataclass(frozen=True)
class TruevisionConfig:
    """ルート設定"""

    decode: DecodeConfig = field(default_factory=DecodeConfig)
    encode: EncodeConfig = field(default_factory=EncodeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def parse_save_mode(name: str) -> SaveMode:
    """保存モード名を SaveMode に変換する

    Args:
        name: 保存モード名（raw-rgb / rle-rgb / raw-palette / rle-palette）

    Raises:
        ConfigError: 未知の保存モード名の場合
    """
    key = name.strip().lower().replace("_", "-")
    if key not in SAVE_MODE_NAMES:
        choices = ", ".join(SAVE_MODE_NAMES)
        raise ConfigError(f"未知の保存モードです: {name} (選択肢: {choices})")
    return SAVE_MODE_NAMES[key]


def load_config(path: Path) -> TruevisionConfig:
    """設定ファイルを読み込む

    Args:
        path: 設定ファイルパス

    Returns:
        TruevisionConfig: 読み込んだ設定（デフォルトとマージ済み）

    Raises:
        ConfigError: ファイル読み込みまたはパースエラー
    """
    if not path.exists():
        raise ConfigError(f"設定ファイルが見つかりません: {path}")

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML解析エラー: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("設定ファイルはYAMLのマッピング形式である必要があります")

    default = get_default_config()

    return TruevisionConfig(
        decode=_merge_decode_config(data.get("decode", {}), default.decode),
        encode=_merge_encode_config(data.get("encode", {}), default.encode),
        logging=_merge_logging_config(data.get("logging", {}), default.logging),
    )


def get_default_config() -> TruevisionConfig:
    """デフォルト設定を取得する"""
    return TruevisionConfig()


def _merge_decode_config(data: dict[str, Any], default: DecodeConfig) -> DecodeConfig:
    """読み込み設定をマージする"""
    if not isinstance(data, dict):
        return default
    return DecodeConfig(
        force_alpha=bool(data.get("force_alpha", default.force_alpha)),
    )


def _merge_encode_config(data: dict[str, Any], default: EncodeConfig) -> EncodeConfig:
    """書き出し設定をマージする"""
    if not isinstance(data, dict):
        return default

    mode = default.mode
    if "mode" in data:
        mode = parse_save_mode(str(data["mode"]))

    rle_capacity = data.get("rle_capacity", default.rle_capacity)
    if not isinstance(rle_capacity, int) or rle_capacity < 1:
        raise ConfigError(f"rle_capacity は1以上の整数である必要があります: {rle_capacity}")

    return EncodeConfig(mode=mode, rle_capacity=rle_capacity)


def _merge_logging_config(data: dict[str, Any], default: LoggingConfig) -> LoggingConfig:
    """ログ設定をマージする"""
    if not isinstance(data, dict):
        return default

    verbose = default.verbose
    if "verbose" in data:
        name = str(data["verbose"]).upper()
        if name not in VerboseLevel.__members__:
            raise ConfigError(f"未知のログレベルです: {data['verbose']}")
        verbose = VerboseLevel[name]

    log_file = data.get("log_file")
    return LoggingConfig(
        verbose=verbose,
        log_file=Path(log_file) if log_file else default.log_file,
    )
