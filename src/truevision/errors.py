"""例外定義モジュール

TGAコーデックが送出する例外の階層を定義する。
呼び出し側は ``TGAError`` を捕捉すればコーデック由来の失敗をまとめて扱える。
"""

import io


class TGAError(Exception):
    """TGAコーデックの基底例外"""

    pass


class MalformedDataError(TGAError, ValueError):
    """不正なTGAデータ

    ストリームの内容がTGA形式として解釈できない場合に発生する。
    """

    pass


class TruncatedDataError(MalformedDataError, EOFError):
    """データ不足

    ヘッダー、パレット、ピクセルデータ等の途中でストリームが終端に達した場合に発生する。
    """

    pass


class BitRangeError(MalformedDataError):
    """ビット抽出範囲エラー

    ビットオフセットと抽出ビット数の合計が8ビットを超えた場合に発生する。
    """

    pass


class UnsupportedFormatError(TGAError, ValueError):
    """未対応のTGA形式

    画像タイプと色深度の組み合わせ、またはインデックスのバイト幅が未対応の場合に発生する。
    """

    pass


class SeekNotSupportedError(TGAError, io.UnsupportedOperation):
    """シーク不可能なストリーム

    フッターや拡張領域の探索にはシーク可能なストリームが必要となる。
    """

    pass
