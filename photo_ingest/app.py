"""
應用程式服務層

解析命令列參數，協調設定、處理器與進度顯示
"""

import argparse
import logging
from collections.abc import Sequence
from pathlib import Path

from photo_ingest.core.pipeline import ImagePipeline
from photo_ingest.core.processor import ImageProcessor
from photo_ingest.core.progress import RichProgressBar
from photo_ingest.data_model import BatchResult
from photo_ingest.settings import AppSettings


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """建立命令列解析器"""
    parser = argparse.ArgumentParser(
        prog="photo-ingest",
        description="Validate, orient and compress photos to WebP.",
    )
    parser.add_argument(
        "inputs",
        nargs="+",
        type=Path,
        help="Image files or folders to compress",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output directory (default: ./output)",
    )
    parser.add_argument("--max-width", type=int, default=None, help="Maximum output width")
    parser.add_argument("--max-height", type=int, default=None, help="Maximum output height")
    parser.add_argument("--quality", type=float, default=None, help="Starting quality (0-1]")
    parser.add_argument(
        "--max-size-mb",
        type=float,
        default=None,
        help="Reject inputs larger than this before compression",
    )
    parser.add_argument("--workers", type=int, default=None, help="Parallel workers")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def collect_inputs(paths: Sequence[Path]) -> list[Path]:
    """展開資料夾，保留明確指定的檔案"""
    collected: list[Path] = []
    for path in paths:
        if path.is_dir():
            collected.extend(ImageProcessor.scan_images(path))
        else:
            collected.append(path)
    return collected


class ApplicationService:
    """
    應用程式服務

    設定可注入以供測試
    """

    def __init__(self, settings: AppSettings | None = None):
        self.settings = settings or AppSettings()

    def run(self, argv: Sequence[str] | None = None) -> int:
        """
        執行批次壓縮

        Returns:
            退出碼 (0: 全部成功, 1: 有失敗, 130: 中斷)
        """
        args = build_parser().parse_args(argv)
        level = "DEBUG" if args.verbose else self.settings.log_level
        logging.basicConfig(level=level, format="%(message)s")

        try:
            options = self.settings.to_processing_options(
                max_width=args.max_width,
                max_height=args.max_height,
                quality=args.quality,
                max_file_size_mb=args.max_size_mb,
            )
            workers = args.workers or self.settings.max_workers
            paths = collect_inputs(args.inputs)
            output = args.output or Path("output")

            with RichProgressBar(total=len(paths)) as bar:
                processor = ImageProcessor(
                    ImagePipeline(options),
                    progress_callback=bar,
                    max_workers=workers,
                )
                result = processor.process_files(paths)

            names = [path.name for path in paths]
            processor.write_results(names, result, output)
            self._display_result(names, result, output)
            return 0 if result.is_complete_success else 1

        except KeyboardInterrupt:
            print("\nInterrupted")
            return 130

        except Exception:
            logger.exception("Batch compression failed")
            return 1

    @staticmethod
    def _display_result(
        names: Sequence[str],
        result: BatchResult,
        output: Path,
    ) -> None:
        """顯示處理結果"""
        print("\n" + "=" * 60)
        print(f"  Total:   {result.total}")
        print(f"  Success: {result.success}")
        if result.failed > 0:
            print(f"  Failed:  {result.failed}")
            for name, error in zip(names, result.errors, strict=True):
                if error is not None:
                    print(f"    {name}: {error}")
        print(f"  Output:  {output}")
        print("=" * 60 + "\n")


def main(argv: Sequence[str] | None = None) -> int:
    """命令列進入點"""
    return ApplicationService().run(argv)
