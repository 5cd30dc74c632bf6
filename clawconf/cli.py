"""Command-line interface for clawconf."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from clawconf.config import CONFIG_PATHS, Settings
from clawconf.service import HostInspector
from clawconf.store.errors import ConfigError
from clawconf.store.global_config import GlobalConfigUpdate, GlobalConfigView
from clawconf.system.runtimes import Runtime

logger = logging.getLogger(__name__)

RUNTIME_LABELS = {
    Runtime.OLLAMA: "Ollama",
    Runtime.LM_STUDIO: "LM Studio",
    Runtime.VLLM: "vLLM",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def cmd_detect(args: argparse.Namespace, inspector: HostInspector) -> int:
    """Handle the detect command."""
    result = inspector.detect_runtimes()

    if args.json:
        print_json(result.to_dict())
        return 0

    for runtime in Runtime:
        status = result[runtime]
        print(f"[{RUNTIME_LABELS[runtime]}]")
        print(f"  Installed: {_yes_no(status.installed)}")
        print(f"  Running:   {_yes_no(status.running)}")
        if status.version:
            print(f"  Version:   {status.version}")
        if status.path:
            print(f"  Path:      {status.path}")
        print()
    return 0


def cmd_models(args: argparse.Namespace, inspector: HostInspector) -> int:
    """Handle the models command."""
    runtime = Runtime(args.runtime)
    models = inspector.list_models(runtime)

    if args.json:
        print_json({"runtime": runtime.value, "models": models})
        return 0

    label = RUNTIME_LABELS[runtime]
    if models is None:
        print(f"{label} does not provide a model listing")
    elif not models:
        print(f"No models found for {label}")
    else:
        print(f"{label} models ({len(models)}):")
        for model in models:
            print(f"  {model}")
    return 0


def cmd_system_info(args: argparse.Namespace, inspector: HostInspector) -> int:
    """Handle the system-info command."""
    snapshot = inspector.get_system_info()

    if args.json:
        print_json(snapshot.to_dict())
        return 0

    print(f"Total Memory:     {snapshot.total_human}")
    print(f"Available Memory: {snapshot.available_human}")
    return 0


def cmd_hardware_fit(args: argparse.Namespace, inspector: HostInspector) -> int:
    """Handle the hardware-fit command."""
    fit = inspector.get_hardware_fit(args.limit)

    if args.json:
        print_json(fit.to_dict() if fit else None)
        return 0

    if fit is None:
        print(f"No hardware advice available (is '{inspector.settings.advisor_command}' installed?)")
        return 0

    system = fit.system
    parts = []
    if system.total_ram_gb is not None:
        parts.append(f"RAM: {system.total_ram_gb} GB")
    if system.vram_gb is not None:
        parts.append(f"VRAM: {system.vram_gb} GB")
    if system.gpu_name:
        parts.append(f"GPU: {system.gpu_name}")
    if system.backend:
        parts.append(f"Backend: {system.backend}")
    print(" · ".join(parts) or "System: unknown")

    if fit.recommendations:
        print("\nRecommended models:")
        for i, rec in enumerate(fit.recommendations, 1):
            params = f" {rec.params_b}B" if rec.params_b is not None else ""
            details = ", ".join(v for v in (rec.fit, rec.use_case) if v)
            score = f" score {rec.score:.1f}" if rec.score is not None else ""
            print(f"  {i}. {rec.name or '?'}{params} ({details or 'n/a'}){score}")
    return 0


def _print_global_config(view: GlobalConfigView) -> None:
    print("Providers:")
    for name in sorted(view.providers):
        entry = view.providers[name]
        print(f"  {name}: {entry.base_url or '-'} (api: {entry.api_kind or '-'})")
    primary = view.primary_model or "(none)"
    if not view.primary_in_allowed:
        primary += " (not in models list)"
    print(f"Primary model:    {primary}")
    print(f"Fallbacks:        {', '.join(view.fallback_models) or '(none)'}")
    print(f"Allowed models:   {', '.join(view.allowed_models) or '(none)'}")
    max_concurrent = view.max_concurrent if view.max_concurrent is not None else "(unset)"
    print(f"Max concurrent:   {max_concurrent}")
    print("Subagents:")
    print(f"  Max concurrent:         {view.subagents.max_concurrent}")
    print(f"  Max spawn depth:        {view.subagents.max_spawn_depth}")
    print(f"  Max children per agent: {view.subagents.max_children_per_agent}")


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def build_update(args: argparse.Namespace) -> GlobalConfigUpdate:
    """Translate `config set` flags into a sparse update."""
    update = GlobalConfigUpdate()
    if args.clear_primary:
        update.primary_model = None
    elif args.primary is not None:
        update.primary_model = args.primary
    if args.clear_fallbacks:
        update.fallback_models = None
    elif args.fallbacks is not None:
        update.fallback_models = _split_list(args.fallbacks)
    if args.allowed is not None:
        update.allowed_models = _split_list(args.allowed) or None
    if args.clear_max_concurrent:
        update.max_concurrent = None
    elif args.max_concurrent is not None:
        update.max_concurrent = args.max_concurrent
    for name in ("max_concurrent", "max_spawn_depth", "max_children_per_agent"):
        value = getattr(args, f"subagent_{name}")
        if value is not None:
            setattr(update, f"subagent_{name}", value)
    return update


def cmd_config(args: argparse.Namespace, inspector: HostInspector) -> int:
    """Handle the config command (the host's global configuration)."""
    action = args.config_action or "show"

    if action == "show":
        view = inspector.get_global_config()
        if args.json:
            print_json(view.to_dict())
        else:
            print(f"Config: {inspector.config_store.path}\n")
            _print_global_config(view)
        return 0

    if action == "init":
        path = inspector.config_store.path
        if inspector.config_store.exists() and not args.force:
            print(f"{path} already exists")
            print("Use --force to overwrite")
            return 1
        inspector.config_store.init_global()
        print(f"Created {path}")
        return 0

    if action == "validate":
        inspector.get_global_config()
        print(f"{inspector.config_store.path} is valid")
        return 0

    if action == "set":
        update = build_update(args)
        if update.is_empty:
            print("Nothing to change")
            return 0
        view = inspector.update_global_config(update)
        if args.json:
            print_json(view.to_dict())
        else:
            print(f"Updated {inspector.config_store.path}")
        return 0

    return 1


def cmd_agents(args: argparse.Namespace, inspector: HostInspector) -> int:
    """Handle the agents command."""
    action = args.agents_action or "list"

    if action == "list":
        names = inspector.list_agents()
        if args.json:
            print_json(names)
        elif not names:
            print(f"No agents in {inspector.agent_store.agents_root}")
        else:
            for name in names:
                print(name)
        return 0

    if action == "show":
        view = inspector.get_agent_view(args.name)
        if args.json:
            print_json(view.to_dict() if view else None)
            return 0
        if view is None:
            print(f"Agent '{args.name}' has no provider configuration yet")
            return 0
        print(f"Agent: {view.agent_name}")
        for name in view.provider_names:
            summary = view.providers[name].summary()
            key = "set" if summary["api_key_set"] else "not set"
            print(
                f"  {name}: {summary['base_url'] or '-'} "
                f"(api: {summary['api'] or '-'}, key {key}, {summary['models_count']} models)"
            )
        return 0

    if action == "status":
        status = inspector.get_sync_status(args.name)
        if args.json:
            print_json(status.to_dict())
            return 0
        print(f"Agent '{args.name}': {'in sync' if status.in_sync else 'out of sync'}")
        if status.missing_in_agent:
            print(f"  Missing in agent: {', '.join(sorted(status.missing_in_agent))}")
        if status.extra_in_agent:
            print(f"  Only in agent:    {', '.join(sorted(status.extra_in_agent))}")
        return 0

    if action == "sync":
        view = inspector.sync_agent(args.name)
        if args.json:
            print_json(view.to_dict())
        else:
            print(f"Synced agent '{args.name}' ({len(view.providers)} providers)")
        return 0

    return 1


def cmd_settings(args: argparse.Namespace, inspector: HostInspector) -> int:
    """Handle the settings command (clawconf's own configuration)."""
    settings = inspector.settings

    if args.validate:
        issues = settings.validate()
        if issues:
            print("Settings issues:")
            for issue in issues:
                print(f"  - {issue}")
            return 1
        print("Settings are valid")
        return 0

    if args.show:
        print_json(settings.to_dict())
        return 0

    if args.init:
        config_path = CONFIG_PATHS[0]
        if config_path.exists() and not args.force:
            print(f"Settings already exist at {config_path}")
            print("Use --force to overwrite")
            return 1
        settings.save(config_path)
        print(f"Settings initialized at {config_path}")
        return 0

    # Default: show settings path
    for path in CONFIG_PATHS:
        if path.exists():
            print(f"Settings loaded from: {path}")
            return 0

    print("No settings file found, using defaults")
    print(f"Create one at: {CONFIG_PATHS[0]}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clawconf",
        description="Inspect local LLM runtimes and reconcile OpenClaw provider configuration",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        help="Path to a clawconf settings file",
    )
    parser.add_argument(
        "--host-root",
        type=Path,
        help="OpenClaw state directory (default: ~/.openclaw)",
    )

    # --json is accepted after any subcommand
    json_parent = argparse.ArgumentParser(add_help=False)
    json_parent.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser(
        "detect",
        parents=[json_parent],
        help="Detect installed and running local LLM runtimes",
    )

    models_parser = subparsers.add_parser(
        "models",
        parents=[json_parent],
        help="List models available on a local runtime",
    )
    models_parser.add_argument(
        "runtime",
        choices=[r.value for r in Runtime],
        help="Runtime to query",
    )

    subparsers.add_parser(
        "system-info",
        parents=[json_parent],
        help="Show total and available memory",
    )

    fit_parser = subparsers.add_parser(
        "hardware-fit",
        parents=[json_parent],
        help="Show model recommendations from llmfit, if installed",
    )
    fit_parser.add_argument(
        "--limit",
        type=int,
        help="Number of recommendations (1-20)",
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="Show, validate or edit the global openclaw.json",
    )
    config_sub = config_parser.add_subparsers(dest="config_action")
    config_sub.add_parser("show", parents=[json_parent], help="Show the global configuration")
    config_sub.add_parser("validate", help="Check that required sections are present")
    init_parser = config_sub.add_parser("init", help="Create a minimal openclaw.json")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing file")
    set_parser = config_sub.add_parser("set", parents=[json_parent], help="Change global settings")
    set_parser.add_argument("--primary", help="Primary model id")
    set_parser.add_argument("--clear-primary", action="store_true", help="Remove the primary model")
    set_parser.add_argument("--fallbacks", help="Comma-separated fallback model ids")
    set_parser.add_argument("--clear-fallbacks", action="store_true", help="Remove all fallbacks")
    set_parser.add_argument("--allowed", help="Comma-separated allowed model ids (empty clears)")
    set_parser.add_argument("--max-concurrent", type=int, help="Agent concurrency limit")
    set_parser.add_argument("--clear-max-concurrent", action="store_true", help="Unset the concurrency limit")
    set_parser.add_argument("--subagent-max-concurrent", type=int, help="Sub-agent concurrency limit")
    set_parser.add_argument("--subagent-max-spawn-depth", type=int, help="Sub-agent spawn depth")
    set_parser.add_argument(
        "--subagent-max-children-per-agent", type=int, help="Sub-agents per agent"
    )

    # agents command
    agents_parser = subparsers.add_parser(
        "agents",
        help="Inspect agents and sync their providers",
    )
    agents_sub = agents_parser.add_subparsers(dest="agents_action")
    agents_sub.add_parser("list", parents=[json_parent], help="List agents")
    for action, help_text in (
        ("show", "Show an agent's providers"),
        ("status", "Compare an agent's providers with the global config"),
        ("sync", "Add missing global providers to an agent, keeping its API keys"),
    ):
        action_parser = agents_sub.add_parser(action, parents=[json_parent], help=help_text)
        action_parser.add_argument("name", help="Agent name")

    # settings command
    settings_parser = subparsers.add_parser(
        "settings",
        help="Manage clawconf settings",
    )
    settings_parser.add_argument("--validate", action="store_true", help="Validate the settings")
    settings_parser.add_argument("--show", action="store_true", help="Show current settings")
    settings_parser.add_argument("--init", action="store_true", help="Initialize default settings file")
    settings_parser.add_argument("--force", action="store_true", help="Force overwrite existing settings")

    return parser


def main(argv: list[str] | None = None, inspector: HostInspector | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "json"):
        args.json = False

    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    if inspector is None:
        settings = Settings.load(args.settings)
        if args.host_root:
            settings.host_root = args.host_root.expanduser()
        logger.debug(f"Using host root {settings.host_root}")
        inspector = HostInspector(settings)

    commands = {
        "detect": cmd_detect,
        "models": cmd_models,
        "system-info": cmd_system_info,
        "hardware-fit": cmd_hardware_fit,
        "config": cmd_config,
        "agents": cmd_agents,
        "settings": cmd_settings,
    }

    cmd_func = commands.get(args.command)
    if cmd_func is None:
        parser.print_help()
        return 1

    try:
        return cmd_func(args, inspector)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
