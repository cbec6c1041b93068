"""Thin CLI wrapper for talos_imagegen.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from talos_imagegen import __version__
from talos_imagegen.config import get_settings, print_settings_json

app = typer.Typer(
    name="talos-imagegen",
    help="Talos Image Generator - kernel config, module lists, and SBC image builds",
    no_args_is_help=True,
)
console = Console()

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"talos-imagegen version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Talos Image Generator - kernel config, module lists, and SBC image builds."""
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(level=level, format=LOG_FORMAT)


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print_json(print_settings_json(settings))
    else:
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Paths:[/bold]")
        console.print(f"  Profiles directory:  {settings.profiles_dir}")
        console.print(f"  Output directory:    {settings.output_dir}")
        console.print(f"  Change document:     {settings.changes_file}")
        console.print(f"  Kernel config:       {settings.kernel_config_file}")
        console.print(f"  Module manifest:     {settings.modules_file}")
        console.print(f"  Packages checkout:   {settings.pkgs_dir}")
        console.print()
        console.print("[bold]Imager:[/bold]")
        console.print(f"  Container runtime:   {settings.docker_bin}")
        console.print(f"  Default image:       {settings.default_imager_image}")
        console.print(f"  Default version:     {settings.default_imager_version}")
        console.print()
        console.print("[bold]Kernel source:[/bold]")
        console.print(f"  GitHub API:          {settings.github_api_url}")
        console.print(f"  Repository:          {settings.kernel_repository}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Log level:           {settings.log_level}")
        console.print(f"  Module footer:       {settings.module_footer_prefix}")
        console.print()
        console.print("[bold]Timeouts (seconds):[/bold]")
        console.print(f"  Download timeout:    {settings.download_timeout}")
        console.print(f"  Build timeout:       {settings.build_timeout}")


profiles_app = typer.Typer(help="Manage build profiles")
app.add_typer(profiles_app, name="profiles")


@profiles_app.command("list")
def profiles_list(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List build profiles in the profiles directory."""
    from talos_imagegen.profiles.io import list_profile_names

    settings = get_settings()
    names = list_profile_names(settings.profiles_dir)

    if json_output:
        console.print_json(json.dumps(names))
        return

    if not names:
        console.print(f"[yellow]No profiles found in {settings.profiles_dir}[/yellow]")
        return

    console.print(f"[bold]Found {len(names)} profile(s):[/bold]")
    for name in names:
        console.print(f"  [green]{name}[/green]")


@profiles_app.command("show")
def profiles_show(
    name: Annotated[str, typer.Argument(help="Profile name to show")],
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show details of a specific profile."""
    from pydantic import ValidationError

    from talos_imagegen.profiles.io import (
        ProfileNotFoundError,
        load_profile_by_name,
        profile_to_yaml_string,
    )

    settings = get_settings()
    try:
        profile = load_profile_by_name(settings.profiles_dir, name)
    except ProfileNotFoundError:
        console.print(f"[red]Profile not found: {escape(str(name))}[/red]")
        raise typer.Exit(code=1) from None
    except ValidationError as e:
        console.print(f"[red]Invalid profile {escape(str(name))}:[/red]")
        console.print(str(e), markup=False)
        raise typer.Exit(code=1) from None

    if json_output:
        console.print_json(profile.model_dump_json(indent=2, exclude_none=True))
    else:
        console.print(profile_to_yaml_string(profile), markup=False)


@profiles_app.command("validate")
def profiles_validate(
    path: Annotated[str, typer.Argument(help="Path to profile file to validate")],
) -> None:
    """Validate a profile file."""
    import yaml
    from pydantic import ValidationError

    from talos_imagegen.profiles.io import load_profile

    file_path = Path(path)
    if not file_path.exists():
        console.print(f"[red]File not found: {escape(str(path))}[/red]")
        raise typer.Exit(code=1)

    try:
        profile = load_profile(file_path)
        console.print(f"[green]✓ Valid profile: {profile.name}[/green]")
        console.print(f"  Arch: {profile.arch}")
        console.print(f"  Platform: {profile.platform}")
        if profile.overlay:
            console.print(f"  Overlay: {profile.overlay.name}")
        console.print(f"  Extensions: {len(profile.system_extensions)}")
    except ValidationError as e:
        console.print("[red]Validation failed:[/red]")
        console.print(str(e), markup=False)
        raise typer.Exit(code=1) from None
    except (ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Validation failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None


build_app = typer.Typer(help="Build Talos images with the imager")
app.add_typer(build_app, name="build")


@build_app.command("run")
def build_run(
    profile_ref: Annotated[
        str,
        typer.Argument(
            help="Profile name or path to a profile file", metavar="PROFILE"
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output directory for images"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the imager profile without running it"),
    ] = False,
) -> None:
    """Run the imager for a build profile."""
    import yaml
    from pydantic import ValidationError

    from talos_imagegen.errors import TalosImagegenError
    from talos_imagegen.imager.compose import (
        compose_imager_config,
        imager_config_to_yaml,
    )
    from talos_imagegen.imager.runner import compose_docker_command, run_imager
    from talos_imagegen.profiles.io import load_profile, load_profile_by_name

    settings = get_settings()
    output_dir = output or settings.output_dir

    try:
        profile_path = Path(profile_ref)
        if profile_path.is_file():
            profile = load_profile(profile_path)
        else:
            profile = load_profile_by_name(settings.profiles_dir, profile_ref)
    except ValidationError as e:
        console.print(f"[red]Invalid profile {escape(str(profile_ref))}:[/red]")
        console.print(str(e), markup=False)
        raise typer.Exit(code=1) from None
    except (TalosImagegenError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    if dry_run:
        cmd = compose_docker_command(
            profile,
            output_dir,
            docker_bin=settings.docker_bin,
            default_image=settings.default_imager_image,
            default_version=settings.default_imager_version,
        )
        document = imager_config_to_yaml(
            compose_imager_config(profile, settings.default_imager_version)
        )
        console.print("[yellow]Dry run - imager not started[/yellow]")
        console.print(f"  Command: {' '.join(cmd)}", markup=False)
        console.print()
        console.print(document, markup=False)
        return

    console.print(f"[blue]Building profile {profile.name}...[/blue]")
    try:
        result = run_imager(
            profile,
            output_dir,
            timeout=settings.build_timeout,
            docker_bin=settings.docker_bin,
            default_image=settings.default_imager_image,
            default_version=settings.default_imager_version,
        )
    except TalosImagegenError as e:
        console.print(f"[red]Build failed ({e.code}): {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    if not result.success:
        console.print(f"[red]✗ {escape(str(result.error_message))}[/red]")
        console.print(f"  Log: {result.log_path}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Build succeeded: {profile.name}[/green]")
    console.print(f"  Log: {result.log_path}")
    for artifact in result.artifacts:
        console.print(f"  Artifact: {artifact}")


kernel_app = typer.Typer(help="Manage the vendored kernel package")
app.add_typer(kernel_app, name="kernel")


@kernel_app.command("merge-config")
def kernel_merge_config(
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Kernel config file to modify"),
    ] = None,
    changes_file: Annotated[
        Path | None,
        typer.Option("--changes", "-y", help="YAML change document"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show changes without writing"),
    ] = False,
) -> None:
    """Merge config overrides from the change document into a kernel config."""
    import yaml
    from pydantic import ValidationError

    from talos_imagegen.errors import TalosImagegenError
    from talos_imagegen.kconfig.models import describe_entry
    from talos_imagegen.kconfig.service import apply_config_file

    settings = get_settings()
    config_path = config_file or settings.kernel_config_file
    changes_path = changes_file or settings.changes_file

    try:
        result = apply_config_file(config_path, changes_path, dry_run=dry_run)
    except ValidationError as e:
        console.print(
            f"[red]Invalid change document {escape(str(changes_path))}:[/red]"
        )
        console.print(str(e), markup=False)
        raise typer.Exit(code=1) from None
    except (TalosImagegenError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    for change in result.changes:
        console.print(
            f"  {change.action.value:<8} {change.key}: "
            f"{describe_entry(change.before)} -> {describe_entry(change.after)}",
            markup=False,
        )

    if dry_run:
        console.print(
            f"[yellow]Dry run - {result.change_count} change(s) not written[/yellow]"
        )
    else:
        console.print(
            f"[green]✓ Config merged: {result.change_count} change(s) "
            f"written to {config_path}[/green]"
        )


@kernel_app.command("clean-config")
def kernel_clean_config(
    input_file: Annotated[Path, typer.Argument(help="Kernel config file to clean")],
    output_file: Annotated[
        Path | None,
        typer.Argument(help="Output file (defaults to overwriting the input)"),
    ] = None,
) -> None:
    """Remove comments that are not 'is not set' markers from a kernel config."""
    from talos_imagegen.errors import TalosImagegenError
    from talos_imagegen.kconfig.service import clean_config_file

    try:
        destination = clean_config_file(input_file, output_file)
    except TalosImagegenError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    console.print(f"[green]✓ Cleaned config written to: {destination}[/green]")


@kernel_app.command("update")
def kernel_update(
    ref: Annotated[
        str,
        typer.Argument(help="Kernel branch or tag (e.g., stable_20250428, rpi-6.18.y)"),
    ],
    pkgs_dir: Annotated[
        Path | None,
        typer.Option("--pkgs-dir", help="Kernel packages checkout"),
    ] = None,
) -> None:
    """Pin the kernel package to a branch or tag of the kernel repository."""
    import httpx

    from talos_imagegen.errors import TalosImagegenError
    from talos_imagegen.kernel.update import update_kernel

    settings = get_settings()
    target_dir = pkgs_dir or settings.pkgs_dir

    console.print(f"[blue]Updating kernel to {ref}...[/blue]")
    try:
        with httpx.Client(headers={"Accept": "application/vnd.github+json"}) as client:
            result = update_kernel(
                ref,
                target_dir,
                client,
                repository=settings.kernel_repository,
                api_base=settings.github_api_url,
                timeout=settings.download_timeout,
            )
    except TalosImagegenError as e:
        console.print(
            f"[red]Kernel update failed ({e.code}): {escape(str(e))}[/red]"
        )
        raise typer.Exit(code=1) from None

    console.print(f"[green]✓ Kernel updated to {ref}[/green]")
    console.print(f"  Commit: {result.commit}")
    console.print(f"  SHA256: {result.checksums.sha256}")
    console.print(f"  SHA512: {result.checksums.sha512}")
    if result.pkg_yaml_changed:
        console.print("  Source switched to GitHub tarball")
    for backup in result.backups:
        console.print(f"  Backup: {backup}")


modules_app = typer.Typer(help="Manage the kernel module manifest")
app.add_typer(modules_app, name="modules")


@modules_app.command("apply")
def modules_apply(
    modules_file: Annotated[
        Path | None,
        typer.Option("--modules", "-m", help="Module manifest file to modify"),
    ] = None,
    changes_file: Annotated[
        Path | None,
        typer.Option("--changes", "-y", help="YAML change document"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show changes without writing"),
    ] = False,
) -> None:
    """Apply module additions and removals from the change document."""
    import yaml
    from pydantic import ValidationError

    from talos_imagegen.errors import TalosImagegenError
    from talos_imagegen.modules.service import apply_module_file

    settings = get_settings()
    modules_path = modules_file or settings.modules_file
    changes_path = changes_file or settings.changes_file

    try:
        result = apply_module_file(
            modules_path,
            changes_path,
            footer_prefix=settings.module_footer_prefix,
            dry_run=dry_run,
        )
    except ValidationError as e:
        console.print(
            f"[red]Invalid change document {escape(str(changes_path))}:[/red]"
        )
        console.print(str(e), markup=False)
        raise typer.Exit(code=1) from None
    except (TalosImagegenError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    for entry in result.removed:
        console.print(f"  - {entry}", markup=False)
    for entry in result.added:
        console.print(f"  + {entry}", markup=False)

    summary = (
        f"{len(result.added)} added, {len(result.removed)} removed, "
        f"{result.total} total"
    )
    if dry_run:
        console.print(f"[yellow]Dry run - {summary}[/yellow]")
    else:
        console.print(f"[green]✓ Modules updated: {summary}[/green]")


if __name__ == "__main__":
    app()
