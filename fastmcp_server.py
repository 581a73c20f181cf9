"""
Decomp Layout Agent — MCP Server

Exposes header layout extraction to an assistant via the Model Context
Protocol:

  1. load_headers           — parse a decompilation tree and build layouts
  2. list_libraries         — modules with their struct / variable counts
  3. get_struct_layout      — fields, offsets and sizes of one struct
  4. get_library_variables  — global variables of one module
  5. find_variable          — one variable, its module and address
  6. write_layout_documents — emit the JSON documents to the output directory
"""

from mcp.server.fastmcp import FastMCP
import os
import sys

# Ensure the package is importable when run as a script
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from decomp_layout.config import LayoutConfig, LayoutConfigError
from decomp_layout.header_source import HeaderParseError
from decomp_layout.models import AggregateField, NOT_A_BITFIELD
from decomp_layout.session import LayoutSession

# ═══════════════════════════════════════════════════════════════════════
#  Server Setup
# ═══════════════════════════════════════════════════════════════════════

mcp = FastMCP("Decomp Layout Agent")

session = None
result = None


def _require_result():
    if result is None:
        return "Error: No headers loaded. Call load_headers first."
    return None


def _dims(dims) -> str:
    return "".join(f"[{d}]" for d in dims)


def _field_rows(fields, depth: int = 0) -> str:
    rows = ""
    indent = "&nbsp;&nbsp;" * depth
    for f in fields.values():
        ptr = "*" if f.is_pointer else ""
        bits = f":{f.bits}" if f.bits != NOT_A_BITFIELD else ""
        rows += (
            f"| {f.offset:#x} | {indent}`{f.name}{_dims(f.array_dims)}{bits}` "
            f"| `{f.type}{ptr}` | {f.size} |\n"
        )
        if isinstance(f, AggregateField):
            rows += _field_rows(f.members, depth + 1)
    return rows


# ═══════════════════════════════════════════════════════════════════════
#  Tool 1 — Load Headers
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def load_headers(root_dir: str, include_dir: str = "", target: str = "", defines: str = "") -> str:
    """
    Parse every module header under a decompilation tree and build the
    struct and variable layouts.

    Args:
        root_dir:       Root directory of the decompilation tree.
        include_dir:    Third-party include directory (relative to root_dir).
                        Empty keeps the configured default (Clang-Include).
        target:         Optional clang target triple, e.g. "x86_64-pc-windows-msvc".
        defines:        Comma-separated preprocessor defines (NAME=VALUE or NAME).
                        Example: "NON_MATCHING,VERSION=2"
    """
    global session, result

    define_list = [d.strip() for d in defines.split(",") if d.strip()] or None
    try:
        config = LayoutConfig.load(
            root_dir,
            include_dir=include_dir.strip() or None,
            target=target.strip() or None,
            defines=define_list,
        )
    except LayoutConfigError as e:
        return f"Error: {e}"

    try:
        new_session = LayoutSession(config)
        new_result = new_session.run()
    except HeaderParseError as e:
        return f"Error: {e}"
    except Exception as e:
        return f"Error loading headers: {e}"

    session, result = new_session, new_result

    failed = len(result.failed_headers)
    return (
        f"Successfully parsed {len(result.headers) - failed} of {len(result.headers)} headers.\n"
        f"{result.summary_line()}.\n"
        f"Map file: {session.offsets.source or 'none'} ({len(session.offsets)} symbols)."
    )


# ═══════════════════════════════════════════════════════════════════════
#  Tool 2 — List Libraries
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def list_libraries() -> str:
    """Lists every module with at least one struct or variable."""
    error = _require_result()
    if error:
        return error

    out = f"**{len(result.libraries)} libraries**\n\n"
    out += "| Library | Structs | Variables |\n|---------|---------|-----------|\n"
    for name, lib in result.libraries.items():
        out += f"| {name} | {len(lib.structs)} | {len(lib.variables)} |\n"
    return out


# ═══════════════════════════════════════════════════════════════════════
#  Tool 3 — Struct Layout
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def get_struct_layout(name: str) -> str:
    """
    Shows the layout of one struct or union: every field with its byte
    offset, declared type and size.  Anonymous unions are expanded inline.

    Args:
        name: Struct or union tag (or typedef name for untagged structs).
    """
    error = _require_result()
    if error:
        return error

    for lib in result.libraries.values():
        record = lib.structs.get(name)
        if record is None:
            continue
        kind = "union" if record.is_union else "struct"
        out = f"## {kind} `{record.name}` — {record.size} bytes ({lib.name})\n\n"
        out += "| Offset | Field | Type | Size |\n|--------|-------|------|------|\n"
        out += _field_rows(record.fields)
        return out

    return f"Struct `{name}` not found."


# ═══════════════════════════════════════════════════════════════════════
#  Tool 4 — Library Variables
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def get_library_variables(library: str) -> str:
    """
    Lists the global variables attributed to one module.

    Args:
        library: Module name (header file name without extension).
    """
    error = _require_result()
    if error:
        return error

    lib = result.libraries.get(library)
    if lib is None:
        return f"Library `{library}` not found."
    if not lib.variables:
        return f"Library `{library}` declares no variables."

    out = f"**{len(lib.variables)} variables in {library}**\n\n"
    out += "| Address | Name | Type | Size |\n|---------|------|------|------|\n"
    for v in lib.variables.values():
        ptr = "*" if v.is_pointer else ""
        out += f"| {v.offset:#x} | `{v.name}{_dims(v.array_dims)}` | `{v.type}{ptr}` | {v.size} |\n"
    return out


# ═══════════════════════════════════════════════════════════════════════
#  Tool 5 — Find Variable
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def find_variable(name: str) -> str:
    """
    Finds a global variable across all modules.

    Args:
        name: Variable name.
    """
    error = _require_result()
    if error:
        return error

    for lib in result.libraries.values():
        v = lib.variables.get(name)
        if v is None:
            continue
        ptr = "*" if v.is_pointer else ""
        address = f"{v.offset:#x}" if v.offset else "unknown"
        return (
            f"`{v.type}{ptr} {v.name}{_dims(v.array_dims)}` in **{lib.name}**\n"
            f"- Size: {v.size} bytes (element {v.type_size})\n"
            f"- Address: {address}"
        )

    return f"Variable `{name}` not found."


# ═══════════════════════════════════════════════════════════════════════
#  Tool 6 — Write Documents
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def write_layout_documents() -> str:
    """Writes the per-library variable documents and structs.json."""
    error = _require_result()
    if error:
        return error

    try:
        written = session.write(result)
    except OSError as e:
        return f"Error writing documents: {e}"

    out = f"Wrote {len(written)} documents to `{session.config.output_path}`:\n"
    for path in written:
        out += f"- {os.path.basename(path)}\n"
    return out


if __name__ == "__main__":
    # Debug: Print loaded tools to stderr (visible in MCP logs)
    try:
        if hasattr(mcp, "_tool_manager") and hasattr(mcp._tool_manager, "_tools"):
            tools = mcp._tool_manager._tools.keys()
            print(f"DEBUG: Layout Agent starting with {len(tools)} tools: {list(tools)}", file=sys.stderr)
        else:
            print("DEBUG: Layout Agent starting (cannot inspect tools)", file=sys.stderr)
    except Exception as e:
        print(f"DEBUG: Error inspecting tools: {e}", file=sys.stderr)

    mcp.run()
