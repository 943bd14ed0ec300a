"""Attendance Tracker package.

Feature modules (spreadsheets, ingestion, attendance, ...) sit behind a thin
Flask controller layer; services depend on repository protocols, and the
MySQL implementations live next to them.
"""
