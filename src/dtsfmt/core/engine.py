#!/usr/bin/env python3
"""
DTSFMT ENGINE - Batch Orchestrator
----------------------------------
FormatEngine takes a file or a directory tree of device-tree sources
through formatting and line-length analysis. It owns the per-document
diagnostics collection and makes sure a file is only ever replaced by a
complete, successfully formatted version of itself.

Author: dtsfmt Team
Date: 2026-10-18
"""

import os
import time
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from dtsfmt.config.settings import Settings
from dtsfmt.diagnostics.linelength import DiagnosticsCollection, LineLengthAnalyzer
from dtsfmt.formatting.pipeline import format_text

logger = logging.getLogger("dtsfmt.engine")

TEMP_SUFFIX = ".dtsfmt.tmp"


class FormatEngine:
    """
    Principal orchestrator for device-tree formatting.
    Paths in reports are relative to the workspace.
    """

    def __init__(self, target: Union[str, Path], settings: Optional[Settings] = None):
        self.target = Path(target).resolve()
        self.workspace = self.target if self.target.is_dir() else self.target.parent
        self.settings = settings or Settings()
        self.options = self.settings.to_format_options()
        self.analyzer = LineLengthAnalyzer(
            max_length=self.settings.max_line_length,
            tab_width=self.settings.tab_width,
            include_comments=self.settings.include_comments_in_length,
            enabled=self.settings.warnings,
        )
        self.diagnostics = DiagnosticsCollection()

    def discover(self, extensions: Optional[List[str]] = None, max_depth: int = 10) -> List[Path]:
        """
        Files to process. A file target is returned as is, whatever its
        extension; directories are searched recursively, skipping symlinks.
        """
        if self.target.is_file():
            return [self.target]
        if not self.target.exists():
            return []

        wanted = {e.lower() for e in (extensions or self.settings.extensions)}
        found = []
        for path in self.workspace.rglob("*"):
            if not path.is_file() or path.is_symlink():
                continue
            if path.suffix.lower() not in wanted:
                continue
            if len(path.relative_to(self.workspace).parts) > max_depth:
                continue
            found.append(path)
        return sorted(found)

    def _relative(self, path: Path) -> str:
        try:
            return str(path.resolve().relative_to(self.workspace))
        except ValueError:
            return str(path)

    def _resolve(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        return path if path.is_absolute() else (self.workspace / path).resolve()

    def format_file(self, path: Union[str, Path], dry_run: bool = True) -> Dict[str, Any]:
        """Formats one file; writes it back only when not a dry run."""
        full_path = self._resolve(path)
        relative = self._relative(full_path)

        if not full_path.is_file():
            return self._file_error(relative, "FILE_NOT_FOUND", f"Path missing: {full_path}")

        try:
            raw_text = full_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading {relative}: {e}")
            return self._file_error(relative, "ENGINE_ERROR", str(e))

        result = format_text(raw_text, self.options)
        if not result.success:
            return self._file_error(relative, "FORMAT_FAILED", result.message)

        is_modified = result.text != raw_text
        report = {
            "file_path": relative,
            "success": True,
            "status": self._derive_status(is_modified, dry_run),
            "written": False,
            "original_content": raw_text,
            "formatted_content": result.text if is_modified else None,
            "timestamp": time.time(),
        }

        if not dry_run and is_modified:
            try:
                self._atomic_write(full_path, result.text)
                report["written"] = True
            except OSError as e:
                report["write_error"] = str(e)
                report["success"] = False

        return report

    def lint_file(self, path: Union[str, Path], formatted: bool = False) -> Dict[str, Any]:
        """
        Line-length analysis of one file, on its current text or, with
        ``formatted``, on what the formatter would produce.
        """
        full_path = self._resolve(path)
        relative = self._relative(full_path)

        if not full_path.is_file():
            self.diagnostics.delete(relative)
            return self._file_error(relative, "FILE_NOT_FOUND", f"Path missing: {full_path}")

        try:
            text = full_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading {relative}: {e}")
            return self._file_error(relative, "ENGINE_ERROR", str(e))

        if formatted:
            result = format_text(text, self.options)
            if not result.success:
                return self._file_error(relative, "FORMAT_FAILED", result.message)
            text = result.text

        if not self.settings.warnings:
            self.diagnostics.clear()
            found = []
        else:
            found = self.analyzer.analyze(text)
            self.diagnostics.set(relative, found)

        return {
            "file_path": relative,
            "success": True,
            "status": "WARNINGS" if found else "CLEAN",
            "diagnostics": found,
            "timestamp": time.time(),
        }

    def run_batch(self, mode: str = "format", dry_run: bool = True, formatted: bool = False,
                  extensions: Optional[List[str]] = None,
                  progress_callback: Optional[Callable[[int, int], None]] = None) -> List[Dict[str, Any]]:
        """Applies format_file or lint_file to every discovered file."""
        if mode not in ("format", "lint"):
            raise ValueError(f"Unknown mode '{mode}'")

        files = self.discover(extensions)
        total_files = len(files)
        reports = []

        for processed, file_path in enumerate(files, start=1):
            try:
                if mode == "format":
                    reports.append(self.format_file(file_path, dry_run=dry_run))
                else:
                    reports.append(self.lint_file(file_path, formatted=formatted))
            except Exception as e:
                logger.error(f"Critical error in batch loop for {file_path}: {e}")
                reports.append(self._file_error(self._relative(file_path), "ENGINE_ERROR", str(e)))

            if progress_callback:
                progress_callback(processed, total_files)

        return reports

    def generate_summary(self, reports: List[Dict[str, Any]]) -> Dict[str, Any]:
        if not reports:
            return {
                "total_files": 0, "success_rate": 0, "successful": 0,
                "changed": 0, "written_to_disk": 0, "diagnostics": 0, "system_errors": 0,
            }

        total = len(reports)
        successful = sum(1 for r in reports if r.get("success", False))
        changed = sum(1 for r in reports if r.get("status") in ("PREVIEW", "FORMATTED"))
        writes = sum(1 for r in reports if r.get("written", False))
        diagnostics = sum(len(r.get("diagnostics") or []) for r in reports)
        system_errors = sum(1 for r in reports if r.get("status") in ("ENGINE_ERROR", "FORMAT_FAILED"))

        return {
            "total_files": total,
            "success_rate": successful / total,
            "successful": successful,
            "changed": changed,
            "written_to_disk": writes,
            "diagnostics": diagnostics,
            "system_errors": system_errors,
            "summary_timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        }

    def _derive_status(self, modified: bool, dry: bool) -> str:
        if not modified: return "UNCHANGED"
        return "PREVIEW" if dry else "FORMATTED"

    def _atomic_write(self, target_path: Path, content: str):
        if not os.access(target_path.parent, os.W_OK):
            raise PermissionError(f"No write access to {target_path.parent}")
        temp_file = target_path.with_name(target_path.name + TEMP_SUFFIX)
        try:
            temp_file.write_text(content, encoding='utf-8')
            os.replace(temp_file, target_path)
        except OSError as e:
            if temp_file.exists(): temp_file.unlink()
            raise OSError(f"Atomic write failed: {e}") from e

    def _file_error(self, path: str, status: str, error: str) -> Dict[str, Any]:
        return {
            "file_path": path, "status": status, "error": error,
            "success": False, "written": False,
        }
