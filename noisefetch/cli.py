"""
CLI 模块

命令行接口实现。
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import click
from loguru import logger

from noisefetch import __version__
from noisefetch.exceptions import NoiseFetchError
from noisefetch.logger import setup_logger
from noisefetch.models import OperationResult, Platform, Settings, load_settings
from noisefetch.orchestrator import VersionEngine

T = TypeVar("T")

PLATFORM_CHOICE = click.Choice([p.value for p in Platform], case_sensitive=False)


class AliasedGroup(click.Group):
    """支持命令别名的命令组"""

    def __init__(self, *args, aliases: Optional[dict] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.aliases = aliases or {}

    def get_command(self, ctx: click.Context, cmd_name: str):
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))


def indent(text: str, level: int = 1) -> str:
    prefix = "  " * level
    return prefix + text.replace("\n", "\n" + prefix)


def resolve_platform(value: Optional[str]) -> Platform:
    """命令行平台参数，未指定时使用当前平台"""
    try:
        if value:
            return Platform.parse(value)
        return Platform.current()
    except NoiseFetchError as e:
        raise click.ClickException(e.message)


def run_engine(
    settings: Settings, action: Callable[[VersionEngine], Awaitable[T]]
) -> T:
    """在新的事件循环中运行一次引擎操作"""

    async def runner() -> T:
        async with VersionEngine(settings) as engine:
            return await action(engine)

    try:
        return asyncio.run(runner())
    except NoiseFetchError as e:
        raise click.ClickException(e.message)
    except click.ClickException:
        raise
    except Exception as e:
        logger.exception(f"运行时错误: {e}")
        raise click.ClickException(f"运行时错误: {e}")


def finish(result: OperationResult):
    """输出操作结果，失败时以非零退出码结束"""
    if not result.success:
        raise click.ClickException(result.message)
    click.echo(result.message)


def check_cache(settings: Settings):
    """命令结束后按需在后台刷新索引"""
    engine = VersionEngine(settings)
    if engine.should_refresh():
        engine.schedule_background_refresh()


@click.group(cls=AliasedGroup, aliases={"ver": "versions"})
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False, resolve_path=True),
    help="设置文件路径（默认 settings.json）",
)
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.option("--no-auto-refresh", is_flag=True, hidden=True)
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    settings_path: Optional[str],
    debug: bool,
    no_auto_refresh: bool,
):
    """NoiseFetch - NoiseEngine 版本管理工具"""
    if setup_logger("DEBUG" if debug else None) == "DEBUG":
        logger.debug("DEBUG 模式已启用")

    try:
        settings = load_settings(settings_path)
    except NoiseFetchError as e:
        raise click.ClickException(str(e))

    ctx.obj = settings
    if not no_auto_refresh:
        ctx.call_on_close(lambda: check_cache(settings))


@main.command()
@click.argument("version")
@click.option("-f", "--force", is_flag=True, help="即使已安装也重新安装")
@click.option("-p", "--platform", "platform_name", type=PLATFORM_CHOICE, help="目标平台")
@click.pass_obj
def install(settings: Settings, version: str, force: bool, platform_name: Optional[str]):
    """
    安装 NoiseEngine 版本

    VERSION 为 latest 时安装最新稳定版，为 latest-pre 时安装最新版本（包括预发布版）。
    """
    platform = resolve_platform(platform_name)
    result = run_engine(
        settings, lambda engine: engine.resolve_and_install(version, platform, force)
    )
    finish(result)


@main.command()
@click.argument("version")
@click.option("-p", "--platform", "platform_name", type=PLATFORM_CHOICE, help="平台")
@click.pass_obj
def uninstall(settings: Settings, version: str, platform_name: Optional[str]):
    """卸载 NoiseEngine 版本"""
    platform = resolve_platform(platform_name)
    result = run_engine(settings, lambda engine: engine.uninstall(version, platform))
    finish(result)


@main.command()
def platforms():
    """列出可用平台"""
    click.echo("可用平台:")
    for platform in Platform:
        click.echo(indent(platform.value))


@main.group(cls=AliasedGroup, aliases={"l": "list", "a": "available", "d": "details"})
def versions():
    """列出 NoiseEngine 版本"""


@versions.command("list")
@click.pass_obj
def versions_list(settings: Settings):
    """列出已安装的版本"""
    engine = VersionEngine(settings)
    for platform in Platform:
        installed = engine.installed_versions(platform)
        if not installed:
            continue
        click.echo(f"{platform}:")
        for version in installed:
            click.echo(indent(version))
        click.echo()


@versions.command("available")
@click.pass_obj
def versions_available(settings: Settings):
    """刷新索引并列出可用版本"""
    report = run_engine(settings, lambda engine: engine.catalog_report(refresh=True))

    click.echo("可用版本:")
    for entry in report:
        line = entry.version
        if entry.label:
            line += f" ({entry.label})"
        if entry.installed_for:
            line += f" (installed for {', '.join(p.value for p in entry.installed_for)})"
        click.echo(indent(line))


@versions.command("details")
@click.argument("version")
@click.pass_obj
def versions_details(settings: Settings, version: str):
    """显示版本详情"""
    details = run_engine(settings, lambda engine: engine.get_details(version))

    click.echo(f"Version: {details.version}")
    click.echo(f"Pre-release: {details.pre_release}")
    click.echo(f"Platforms: {', '.join(p.value for p in details.extensions)}")


if __name__ == "__main__":
    main()
