"""
批次圖片處理器

負責多張圖片的批次壓縮，每張圖片各自擁有緩衝區與繪圖表面，
因此可以不加協調地並行處理
"""

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Final, TypeVar

from photo_ingest.data_model import BatchResult, EncodedImage, ImageSource, webp_filename

from .exceptions import ImageIngestError, SourceReadError
from .pipeline import ImagePipeline


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str, bool], None]
T = TypeVar("T")

# 資料夾掃描時納入的副檔名
SUPPORTED_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {".jpg", ".jpeg", ".png", ".webp", ".gif", ".heic", ".heif"}
)


def is_supported_image(path: Path) -> bool:
    """檔案是否為支援的圖片格式"""
    return path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS


class ImageProcessor:
    """
    圖片批次處理器

    支援序列和並行處理模式，結果順序與輸入相同
    """

    def __init__(
        self,
        pipeline: ImagePipeline | None = None,
        progress_callback: ProgressCallback | None = None,
        max_workers: int = 1,
    ):
        """
        初始化處理器

        Args:
            pipeline: 單張圖片處理流程
            progress_callback: 進度回調函數 (completed, total, name, success)
            max_workers: 並行工作執行緒數（1=序列處理，>1=並行處理）
        """
        self._pipeline = pipeline or ImagePipeline()
        self._progress_callback = progress_callback
        self._max_workers = max(1, max_workers)
        self._progress_lock = threading.Lock()

    @staticmethod
    def scan_images(folder: Path) -> list[Path]:
        """
        掃描資料夾中的圖片檔案

        Args:
            folder: 資料夾路徑

        Returns:
            排序後的圖片檔案路徑列表
        """
        return [f for f in sorted(folder.iterdir()) if is_supported_image(f)]

    def process_batch(self, sources: Sequence[ImageSource]) -> BatchResult:
        """
        處理多張已載入的圖片

        處理錯誤 (ImageIngestError) 逐張記錄，其他例外直接拋出

        Args:
            sources: 圖片來源列表

        Returns:
            批次結果
        """
        return self._run(sources, [source.name for source in sources], self._pipeline.compress)

    def process_files(self, paths: Sequence[Path]) -> BatchResult:
        """
        讀取並處理多個檔案

        無法讀取的檔案與處理錯誤一樣逐張記錄

        Args:
            paths: 檔案路徑列表

        Returns:
            批次結果
        """
        return self._run(paths, [path.name for path in paths], self._compress_file)

    def _compress_file(self, path: Path) -> EncodedImage:
        try:
            source = ImageSource.from_path(path)
        except OSError as exc:
            raise SourceReadError(str(exc)) from exc
        return self._pipeline.compress(source)

    def _run(
        self,
        items: Sequence[T],
        names: Sequence[str],
        work: Callable[[T], EncodedImage],
    ) -> BatchResult:
        total = len(items)
        results: list[EncodedImage | None] = [None] * total
        errors: list[str | None] = [None] * total

        if total == 0:
            return BatchResult(total=0, success=0, failed=0)

        if self._max_workers <= 1 or total == 1:
            self._process_sequential(items, names, work, results, errors)
        else:
            self._process_parallel(items, names, work, results, errors)

        success = sum(1 for result in results if result is not None)
        return BatchResult(
            total=total,
            success=success,
            failed=total - success,
            results=tuple(results),
            errors=tuple(errors),
        )

    @staticmethod
    def _process_one(
        work: Callable[[T], EncodedImage], item: T, name: str
    ) -> tuple[EncodedImage | None, str | None]:
        try:
            return work(item), None
        except ImageIngestError as exc:
            logger.warning("Failed to process %s: %s", name, exc)
            return None, str(exc)

    def _report(self, completed: int, total: int, name: str, success: bool) -> None:
        if self._progress_callback is None:
            return
        with self._progress_lock:
            self._progress_callback(completed, total, name, success)

    def _process_sequential(
        self,
        items: Sequence[T],
        names: Sequence[str],
        work: Callable[[T], EncodedImage],
        results: list[EncodedImage | None],
        errors: list[str | None],
    ) -> None:
        """序列處理所有圖片"""
        total = len(items)
        for index, item in enumerate(items):
            results[index], errors[index] = self._process_one(work, item, names[index])
            self._report(index + 1, total, names[index], results[index] is not None)

    def _process_parallel(
        self,
        items: Sequence[T],
        names: Sequence[str],
        work: Callable[[T], EncodedImage],
        results: list[EncodedImage | None],
        errors: list[str | None],
    ) -> None:
        """並行處理所有圖片"""
        total = len(items)
        completed = 0

        logger.info(
            "Parallel processing: %d images with %d workers",
            total,
            self._max_workers,
        )

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = {
                executor.submit(self._process_one, work, item, names[index]): index
                for index, item in enumerate(items)
            }

            for future in as_completed(futures):
                index = futures[future]
                results[index], errors[index] = future.result()
                completed += 1
                self._report(completed, total, names[index], results[index] is not None)

    def process_folder(self, input_folder: Path, output_folder: Path | None = None) -> BatchResult:
        """
        壓縮資料夾中的所有圖片並寫出 .webp 檔

        Args:
            input_folder: 輸入資料夾
            output_folder: 輸出資料夾（預設為 input_folder / "output"）

        Returns:
            批次結果
        """
        output_folder = output_folder or input_folder / "output"
        paths = self.scan_images(input_folder)
        result = self.process_files(paths)
        self.write_results([path.name for path in paths], result, output_folder)
        return result

    @staticmethod
    def write_results(
        names: Sequence[str],
        result: BatchResult,
        output_folder: Path,
    ) -> list[Path]:
        """
        將成功的結果寫入輸出資料夾

        Args:
            names: 與結果同序的原始檔名

        Returns:
            已寫出的檔案路徑
        """
        output_folder.mkdir(parents=True, exist_ok=True)
        written = []
        for name, encoded in zip(names, result.results, strict=True):
            if encoded is None:
                continue
            path = output_folder / webp_filename(name)
            path.write_bytes(encoded.data)
            written.append(path)
        return written
