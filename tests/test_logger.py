"""ログ出力のテスト

CodecLoggerのレベル別出力とファイル出力を検証する。
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from truevision.logger import CodecLogger, LogConfig, VerboseLevel

if TYPE_CHECKING:
    from pytest import CaptureFixture


class TestLogConfig:
    """LogConfig設定クラスのテスト"""

    def test_default_values(self) -> None:
        """デフォルト値が正しく設定される"""
        config = LogConfig()
        assert config.verbose_level == VerboseLevel.NORMAL
        assert config.log_file is None

    def test_default_logger_config(self) -> None:
        """設定を省略した場合はデフォルト設定になる"""
        assert CodecLogger().config == LogConfig()


class TestVerboseLevel:
    """VerboseLevel列挙型のテスト"""

    def test_level_ordering(self) -> None:
        """レベルの大小関係が正しい"""
        assert VerboseLevel.QUIET < VerboseLevel.NORMAL < VerboseLevel.VERBOSE < VerboseLevel.DEBUG


class TestCodecLogger:
    """CodecLoggerクラスのテスト"""

    @pytest.mark.parametrize(
        "method, level, expected",
        [
            pytest.param(CodecLogger.info, VerboseLevel.QUIET, False, id="info: QUIET"),
            pytest.param(CodecLogger.info, VerboseLevel.NORMAL, True, id="info: NORMAL"),
            pytest.param(CodecLogger.verbose, VerboseLevel.NORMAL, False, id="verbose: NORMAL"),
            pytest.param(CodecLogger.verbose, VerboseLevel.VERBOSE, True, id="verbose: VERBOSE"),
            pytest.param(CodecLogger.verbose, VerboseLevel.DEBUG, True, id="verbose: DEBUG"),
            pytest.param(CodecLogger.debug, VerboseLevel.VERBOSE, False, id="debug: VERBOSE"),
            pytest.param(CodecLogger.debug, VerboseLevel.DEBUG, True, id="debug: DEBUG"),
            pytest.param(CodecLogger.warning, VerboseLevel.QUIET, False, id="warning: QUIET"),
            pytest.param(CodecLogger.warning, VerboseLevel.NORMAL, True, id="warning: NORMAL"),
        ],
    )
    def test_level_filtering(
        self,
        capsys: CaptureFixture[str],
        method: Callable[[CodecLogger, str], None],
        level: VerboseLevel,
        expected: bool,
    ) -> None:
        """詳細レベルに応じて標準出力への出力が制御される"""
        logger = CodecLogger(LogConfig(verbose_level=level))
        method(logger, "テストメッセージ")
        captured = capsys.readouterr()
        assert ("テストメッセージ" in captured.out) is expected

    def test_warning_prefix(self, capsys: CaptureFixture[str]) -> None:
        """警告メッセージには接頭辞が付く"""
        CodecLogger().warning("パレットが満杯です")
        assert "警告: パレットが満杯です" in capsys.readouterr().out

    def test_error_outputs_to_stderr_even_when_quiet(self, capsys: CaptureFixture[str]) -> None:
        """エラーはQUIETでも標準エラー出力へ出力される"""
        logger = CodecLogger(LogConfig(verbose_level=VerboseLevel.QUIET))
        logger.error("読み込み失敗")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "エラー: 読み込み失敗" in captured.err

    def test_log_conversion(self, capsys: CaptureFixture[str]) -> None:
        """変換ログはVERBOSE以上でファイル名とステータスを出力する"""
        logger = CodecLogger(LogConfig(verbose_level=VerboseLevel.VERBOSE))
        logger.log_conversion(Path("/tmp/a.png"), Path("/tmp/b.tga"), "RLE_RGB")
        assert "変換: a.png -> b.tga [RLE_RGB]" in capsys.readouterr().out

    def test_log_to_file(self, tmp_path: Path) -> None:
        """ファイルにはレベルに関係なくタイムスタンプ付きで記録される"""
        log_file = tmp_path / "codec.log"
        config = LogConfig(verbose_level=VerboseLevel.QUIET, log_file=log_file)
        with CodecLogger(config) as logger:
            logger.info("情報")
            logger.verbose("詳細")
            logger.debug("デバッグ")
            logger.warning("警告")
            logger.error("エラー")

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert [line.split("] ", 1)[1] for line in lines] == [
            "INFO: 情報",
            "VERBOSE: 詳細",
            "DEBUG: デバッグ",
            "WARNING: 警告",
            "ERROR: エラー",
        ]
        assert all(line.startswith("[") for line in lines)

    def test_log_file_strips_ansi(self, tmp_path: Path) -> None:
        """ファイル出力ではANSIエスケープシーケンスが除去される"""
        log_file = tmp_path / "codec.log"
        with CodecLogger(LogConfig(log_file=log_file)) as logger:
            logger.info("\x1b[32m完了\x1b[0m")
        assert "INFO: 完了" in log_file.read_text(encoding="utf-8")

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        """close()は複数回呼び出せる"""
        logger = CodecLogger(LogConfig(log_file=tmp_path / "codec.log"))
        logger.close()
        logger.close()
