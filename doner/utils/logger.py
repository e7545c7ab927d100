import logging
from pathlib import Path
from doner.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str) -> logging.Logger:
    """ロガーインスタンスを取得

    Args:
        name: ロガー名（通常は__name__を渡す）

    Returns:
        logging.Logger: 設定済みロガーインスタンス
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL))

    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        # コンソールハンドラ（標準出力はコマンドの結果に使うのでstderrへ）
        ch = logging.StreamHandler()
        ch.setLevel(logging.DEBUG)
        ch.setFormatter(formatter)
        logger.addHandler(ch)

        # ファイルハンドラ（LOG_FILE指定時のみ）
        if settings.LOG_FILE:
            log_path = Path(settings.LOG_FILE)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            fh = logging.FileHandler(log_path, encoding="utf-8")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    return logger


def set_level(level: int, prefix: str = "doner"):
    """取得済みのdonerロガーのレベルをまとめて変更

    Args:
        level: 新しいログレベル
        prefix: 対象とするロガー名の接頭辞
    """
    for name, logger in logging.Logger.manager.loggerDict.items():
        if isinstance(logger, logging.Logger) and (
            name == prefix or name.startswith(prefix + ".")
        ):
            logger.setLevel(level)
