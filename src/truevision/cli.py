"""CLI entry point for truevision."""

from pathlib import Path
from typing import Annotated

import typer
from PIL import Image, UnidentifiedImageError
from rich.console import Console
from rich.table import Table

from truevision import __version__
from truevision.config import (
    ConfigError,
    TruevisionConfig,
    get_default_config,
    load_config,
    parse_save_mode,
)
from truevision.decoder import TGAImage, load
from truevision.encoder import save
from truevision.errors import TGAError, UnsupportedFormatError
from truevision.imaging import PILPixelAccessor, to_pil_image
from truevision.logger import CodecLogger, LogConfig, VerboseLevel
from truevision.types import ExitCode

app = typer.Typer(help="TGA画像の解析・変換を行うCLIツール")
console = Console()

TGA_SUFFIXES = frozenset({".tga", ".icb", ".vda", ".vst"})
"""TGAとして扱う拡張子"""

_NO_ALPHA_SUFFIXES = frozenset({".jpg", ".jpeg", ".bmp"})


def _is_tga(path: Path) -> bool:
    return path.suffix.lower() in TGA_SUFFIXES


def _format_size(size_bytes: int) -> str:
    """バイト数を人間が読みやすい形式に変換する"""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def _fail(message: str, code: ExitCode) -> typer.Exit:
    console.print(f"[red]Error: {message}[/red]")
    return typer.Exit(int(code))


def _exit_code_for(error: Exception) -> ExitCode:
    """例外に対応する終了コードを返す"""
    if isinstance(error, (UnsupportedFormatError, UnidentifiedImageError)):
        return ExitCode.UNSUPPORTED_FORMAT
    if isinstance(error, (FileNotFoundError, ConfigError)):
        return ExitCode.INVALID_INPUT
    return ExitCode.ERROR


def _build_table(title: str, rows: list[tuple[str, str]]) -> Table:
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for name, value in rows:
        table.add_row(name, value)
    return table


def _print_image_info(path: Path, image: TGAImage) -> None:
    """デコード済み画像の情報をテーブルで表示する"""
    console.print(_build_table("Header", image.header.describe()))

    summary = [
        ("File", path.name),
        ("FileSize", _format_size(path.stat().st_size)),
        ("PixelFormat", image.pixel_format.value),
        ("HasAlpha", "yes" if image.has_alpha else "no"),
    ]
    if image.image_id:
        summary.append(("ImageID", image.image_id.decode("ascii", errors="replace")))
    console.print(_build_table("Image", summary))

    if image.extension_area is not None:
        console.print(_build_table("Extension Area", image.extension_area.describe()))

    if image.developer_area is not None:
        table = Table(title="Developer Area")
        table.add_column("Tag", justify="right")
        table.add_column("Offset", justify="right")
        table.add_column("Size", justify="right")
        for developer_field in image.developer_area.fields:
            table.add_row(
                str(developer_field.tag),
                str(developer_field.offset),
                str(developer_field.size),
            )
        console.print(table)

    if image.footer is not None:
        console.print(_build_table("Footer", image.footer.describe()))
    else:
        console.print("[dim]フッターなし（TGA 1.0形式）[/dim]")


@app.command()
def info(
    input_path: Annotated[Path, typer.Argument(help="解析対象のTGAファイル")],
    force_alpha: Annotated[
        bool, typer.Option("--force-alpha", help="格納されたアルファ値をそのまま使用する")
    ] = False,
) -> None:
    """TGAファイルのヘッダーとメタデータを表示する"""
    if not input_path.exists():
        raise _fail(f"ファイルが見つかりません: {input_path}", ExitCode.INVALID_INPUT)

    try:
        image = load(input_path, force_alpha=force_alpha)
    except (TGAError, OSError) as e:
        raise _fail(str(e), _exit_code_for(e)) from e

    _print_image_info(input_path, image)
    raise typer.Exit(int(ExitCode.SUCCESS))


def _resolve_config(config_path: Path | None) -> TruevisionConfig:
    if config_path is None:
        return get_default_config()
    return load_config(config_path)


def _open_source(source: Path, force_alpha: bool, logger: CodecLogger) -> Image.Image:
    """変換元を正立したPIL.Imageとして読み込む"""
    if _is_tga(source):
        image = load(source, force_alpha=force_alpha, logger=logger)
        logger.verbose(
            f"読み込み: {source.name} {image.width}x{image.height} {image.pixel_format.value}"
        )
        return to_pil_image(image)

    with Image.open(source) as opened:
        opened.load()
        logger.verbose(f"読み込み: {source.name} {opened.width}x{opened.height} {opened.mode}")
        return opened.copy()


@app.command()
def convert(
    source: Annotated[Path, typer.Argument(help="変換元の画像ファイル")],
    dest: Annotated[Path, typer.Argument(help="変換先の画像ファイル")],
    mode: Annotated[
        str | None,
        typer.Option(help="TGA保存モード（raw-rgb / rle-rgb / raw-palette / rle-palette）"),
    ] = None,
    force_alpha: Annotated[
        bool, typer.Option("--force-alpha", help="格納されたアルファ値をそのまま使用する")
    ] = False,
    config_path: Annotated[
        Path | None, typer.Option("--config", help="設定ファイル（YAML）")
    ] = None,
    verbose: Annotated[int, typer.Option("-v", "--verbose", count=True, help="詳細ログ出力")] = 0,
    log_file: Annotated[Path | None, typer.Option(help="ログファイル出力先")] = None,
) -> None:
    """画像を変換する（TGAの読み込み・書き出しに対応）"""
    if not source.exists():
        raise _fail(f"ファイルが見つかりません: {source}", ExitCode.INVALID_INPUT)

    try:
        config = _resolve_config(config_path)
        save_mode = parse_save_mode(mode) if mode is not None else config.encode.mode
    except ConfigError as e:
        raise _fail(str(e), ExitCode.INVALID_INPUT) from e

    log_config = LogConfig(
        verbose_level=VerboseLevel(min(verbose, VerboseLevel.DEBUG))
        if verbose > 0
        else config.logging.verbose,
        log_file=log_file or config.logging.log_file,
    )

    with CodecLogger(log_config) as logger:
        try:
            pil_image = _open_source(source, force_alpha or config.decode.force_alpha, logger)

            if _is_tga(dest):
                save(
                    dest,
                    save_mode,
                    PILPixelAccessor(pil_image),
                    rle_capacity=config.encode.rle_capacity,
                    logger=logger,
                )
                status = save_mode.name
            else:
                if dest.suffix.lower() in _NO_ALPHA_SUFFIXES and pil_image.mode != "RGB":
                    pil_image = pil_image.convert("RGB")
                dest.parent.mkdir(parents=True, exist_ok=True)
                pil_image.save(dest)
                status = dest.suffix.lstrip(".").upper()
        except (TGAError, OSError, ValueError) as e:
            logger.error(f"{source.name}: {e}")
            raise typer.Exit(int(_exit_code_for(e))) from e

        logger.log_conversion(source, dest, status)
        logger.info(f"変換完了: {dest}")

    raise typer.Exit(int(ExitCode.SUCCESS))


def version_callback(value: bool) -> None:
    """バージョン表示コールバック"""
    if value:
        typer.echo(f"truevision {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="バージョンを表示する",
        ),
    ] = False,
) -> None:
    """truevision CLI - TGA画像の読み込み・書き出し"""
    pass
