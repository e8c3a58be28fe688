"""Lua machine-config generation for the cartesi machine runtime."""

from carti.core.machine.assemble import ResolvedMachine


def lua_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def lua_bool(value: bool) -> str:
    return "true" if value else "false"


def generate_lua_config(machine: ResolvedMachine, prefix: str = "return") -> str:
    """Render a machine config as a Lua table.

    Args:
        machine: Resolved machine configuration
        prefix: Statement the table is attached to, e.g. "return" for a module
            loaded with require()
    """
    lines = [
        f"{prefix} {{",
        "  ram = {",
        f"    length = {machine.ram_length:#x},",
        f"    image_filename = {lua_string(machine.ram_image_filename)},",
        "  },",
        "  rom = {",
        f"    image_filename = {lua_string(machine.rom_image_filename)},",
        f"    bootargs = {lua_string(machine.bootargs)},",
        "  },",
        "  flash_drive = {",
    ]
    for drive in machine.flash_drives:
        lines.extend(
            [
                "    {",
                f"      start = {drive.start:#x},",
                f"      length = {drive.length:#x},",
                f"      image_filename = {lua_string(drive.image_filename)},",
                f"      shared = {lua_bool(drive.shared)},",
                "    },",
            ]
        )
    lines.extend(["  },", "}", ""])
    return "\n".join(lines)
