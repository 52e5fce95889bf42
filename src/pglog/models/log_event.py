"""
Log Event Models

LogEvent is one diagnostic event as reported by the host process.
ProcessContext carries the ambient identifiers of the reporting process
(who, where, which transaction) that every record also needs.

Absent optional values are None, which is distinct from an empty string:
None becomes an empty cell, "" becomes a quoted empty cell.
"""

import getpass
import os
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from pglog.models.severity import Severity, parse_severity


class LogEvent(BaseModel):
    """
    A single diagnostic event.

    Only severity and message are required. Everything else mirrors the
    optional parts of a server error report.
    """

    severity: Severity = Field(..., description="Message severity")
    message: str = Field(..., description="Primary message text")

    detail: Optional[str] = Field(None, description="Detail for client and log")
    detail_log: Optional[str] = Field(None, description="Detail for the log only, wins over detail")
    hint: Optional[str] = Field(None, description="Hint text")
    internal_query: Optional[str] = Field(None, description="Internally generated query text")
    internal_pos: Optional[int] = Field(None, description="Cursor position in internal query")
    context: Optional[str] = Field(None, description="Context (call stack) text")

    query: Optional[str] = Field(None, description="Statement being executed when reported")
    cursor_pos: Optional[int] = Field(None, description="Cursor position in query")
    hide_stmt: bool = Field(False, description="Suppress the statement for this event")

    funcname: Optional[str] = Field(None, description="Reporting function")
    filename: Optional[str] = Field(None, description="Reporting source file")
    lineno: Optional[int] = Field(None, description="Reporting source line")

    sql_state: Optional[str | int] = Field(None, description="SQLSTATE code, text or packed")
    timestamp: Optional[datetime] = Field(None, description="Event time (spooler clock if None)")

    class Config:
        frozen = True

    @field_validator("severity", mode="before")
    @classmethod
    def coerce_severity(cls, v):
        if isinstance(v, str):
            return parse_severity(v)
        return v


# Process start times, remembered per pid so forked children get their own
_process_start_times: dict[int, datetime] = {}


class ProcessContext(BaseModel):
    """
    Ambient identifiers of the process reporting an event.

    All fields are optional; a missing value renders as an empty cell.
    """

    pid: Optional[int] = Field(None, description="Process id")
    user_name: Optional[str] = Field(None, description="Session user name")
    database_name: Optional[str] = Field(None, description="Connected database")
    remote_host: Optional[str] = Field(None, description="Client host")
    remote_port: Optional[str] = Field(None, description="Client port")
    start_time: Optional[datetime] = Field(None, description="Process start time")
    activity: Optional[str] = Field(None, description="Human readable activity descriptor")
    backend_id: Optional[int] = Field(None, description="Backend slot for virtual xids")
    local_xid: Optional[int] = Field(None, description="Local transaction counter")
    transaction_id: Optional[int] = Field(0, description="Top transaction id, 0 if none")
    application_name: Optional[str] = Field(None, description="Client application name")

    class Config:
        frozen = True

    @field_validator("remote_port", mode="before")
    @classmethod
    def coerce_port(cls, v):
        if isinstance(v, int):
            return str(v)
        return v

    @classmethod
    def for_current_process(
        cls, application_name: Optional[str] = None, **overrides
    ) -> "ProcessContext":
        """
        Build a context describing the running interpreter.

        The start time is taken the first time a pid asks for it and reused
        afterwards.

        Args:
            application_name: Value for the application name cell
            **overrides: Any other field to set explicitly
        """
        pid = os.getpid()
        if pid not in _process_start_times:
            _process_start_times[pid] = datetime.now().astimezone()

        try:
            user_name = getpass.getuser()
        except (KeyError, OSError):
            user_name = None

        values = {
            "pid": pid,
            "user_name": user_name,
            "start_time": _process_start_times[pid],
            "application_name": application_name,
        }
        values.update(overrides)
        return cls(**values)
