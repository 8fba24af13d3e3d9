"""
Infrastructure rules.

Flags direct use of the file system, HTTP, database connections and external
processes from code that should reach them through an injected abstraction.
"""

from __future__ import annotations

from typing import Optional

from seamscan.analysis.context import ContextTag
from seamscan.core.findings import Finding, Severity
from seamscan.core.rules import Rule, RuleCategory, RuleContext, RuleDescriptor, rule
from seamscan.core.tree import Node, NodeKind
from seamscan.rules.common import constructed_type, is_member_of, qualified_member, simple_name


FILE_SYSTEM_TYPES = frozenset({"System.IO.File", "System.IO.Directory"})
FILE_SYSTEM_CONSTRUCTIONS = frozenset({
    "System.IO.FileStream",
    "System.IO.StreamReader",
    "System.IO.StreamWriter",
    "System.IO.FileInfo",
    "System.IO.DirectoryInfo",
})

HTTP_CLIENT_TYPE = "System.Net.Http.HttpClient"

DATABASE_CONNECTION_TYPES = frozenset({
    "System.Data.SqlClient.SqlConnection",
    "Microsoft.Data.SqlClient.SqlConnection",
    "System.Data.OleDb.OleDbConnection",
    "System.Data.Odbc.OdbcConnection",
    "Npgsql.NpgsqlConnection",
    "MySql.Data.MySqlClient.MySqlConnection",
    "MySqlConnector.MySqlConnection",
    "Microsoft.Data.Sqlite.SqliteConnection",
    "System.Data.SQLite.SQLiteConnection",
    "Oracle.ManagedDataAccess.Client.OracleConnection",
    "Oracle.DataAccess.Client.OracleConnection",
})
DATABASE_CONNECTION_BASES = frozenset({"System.Data.Common.DbConnection", "System.Data.IDbConnection"})

PROCESS_TYPE = "System.Diagnostics.Process"
PROCESS_START_INFO_TYPE = "System.Diagnostics.ProcessStartInfo"
PROCESS_START = frozenset({"Start"})


@rule
class FileSystemAccessRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM015",
        title="Direct file system access",
        message_format="Direct file system access via '{0}' creates an infrastructure dependency",
        category=RuleCategory.INFRASTRUCTURE,
        default_severity=Severity.INFO,
        description=(
            "Direct file system access makes code dependent on the file system and harder to test. "
            "Consider injecting an IFileSystem abstraction."
        ),
    )
    node_kinds = frozenset({NodeKind.INVOCATION, NodeKind.OBJECT_CREATION})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        symbol = node.symbol
        if symbol is None:
            return None
        if node.kind == NodeKind.INVOCATION:
            if not symbol.is_static or symbol.containing_type not in FILE_SYSTEM_TYPES:
                return None
            accessed = qualified_member(symbol)
        else:
            if symbol.containing_type not in FILE_SYSTEM_CONSTRUCTIONS:
                return None
            accessed = f"new {symbol.containing_type_name}"

        if self.is_type_excluded(context, symbol):
            return None
        return self.create_finding(context, node.span, accessed)


@rule
class HttpClientCreationRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM016",
        title="Direct HttpClient creation",
        message_format="Direct HttpClient creation should be avoided in favor of IHttpClientFactory",
        category=RuleCategory.INFRASTRUCTURE,
        default_severity=Severity.WARNING,
        description=(
            "Creating HttpClient directly can lead to socket exhaustion and makes testing difficult. "
            "Use IHttpClientFactory instead."
        ),
    )
    node_kinds = frozenset({NodeKind.OBJECT_CREATION})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        if constructed_type(node) != HTTP_CLIENT_TYPE:
            return None
        tags = context.tags(node)
        if ContextTag.HTTP_CLIENT_FACTORY_CLASS in tags or ContextTag.STATIC_READONLY_FIELD_INIT in tags:
            return None
        if self.is_type_excluded(context, node.symbol):
            return None
        return self.create_finding(context, node.span)


@rule
class DatabaseAccessRule(Rule):
    descriptor = RuleDescriptor(
        rule_id="SEAM017",
        title="Direct database connection creation",
        message_format="Direct creation of '{0}' creates tight coupling to database infrastructure",
        category=RuleCategory.INFRASTRUCTURE,
        default_severity=Severity.INFO,
        description=(
            "Creating database connections directly makes code tightly coupled to the database and hard "
            "to test. Consider using the repository pattern with dependency injection."
        ),
    )
    node_kinds = frozenset({NodeKind.OBJECT_CREATION})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        type_name = constructed_type(node)
        if type_name is None:
            return None
        if type_name not in DATABASE_CONNECTION_TYPES and not any(
            node.symbol.derives_from(base) for base in DATABASE_CONNECTION_BASES
        ):
            return None
        if ContextTag.DATA_ACCESS_CLASS in context.tags(node):
            return None
        if self.is_type_excluded(context, node.symbol):
            return None
        return self.create_finding(context, node.span, simple_name(type_name))


@rule
class ProcessStartRule(Rule):
    """
    Flags `Process.Start(...)`, `new ProcessStartInfo(...)` and
    `new Process().Start()`. The last shape is reported twice, once for the
    creation and once for the call.
    """

    descriptor = RuleDescriptor(
        rule_id="SEAM018",
        title="Direct Process.Start usage",
        message_format="Direct Process.Start creates dependency on external processes",
        category=RuleCategory.INFRASTRUCTURE,
        default_severity=Severity.INFO,
        description=(
            "Calling Process.Start directly creates a dependency on external processes and system state. "
            "Consider injecting an IProcessRunner abstraction."
        ),
    )
    node_kinds = frozenset({NodeKind.INVOCATION, NodeKind.OBJECT_CREATION})

    def evaluate(self, node: Node, context: RuleContext) -> Optional[Finding]:
        if node.kind == NodeKind.INVOCATION:
            flagged = is_member_of(node.symbol, PROCESS_TYPE, PROCESS_START)
        else:
            type_name = constructed_type(node)
            flagged = type_name == PROCESS_START_INFO_TYPE or (
                type_name == PROCESS_TYPE and self._started_immediately(node, context)
            )
        if not flagged or self.is_type_excluded(context, node.symbol):
            return None
        return self.create_finding(context, node.span)

    def _started_immediately(self, node: Node, context: RuleContext) -> bool:
        access = context.tree.parent(node)
        if access is None or access.kind != NodeKind.MEMBER_ACCESS or access.name != "Start":
            return False
        call = context.tree.parent(access)
        return call is not None and call.kind == NodeKind.INVOCATION
