"""Orchestration of export runs and their reports."""

from .export_orchestrator import ExportOrchestrator
from .export_report import ExportReport

__all__ = ['ExportOrchestrator', 'ExportReport']
