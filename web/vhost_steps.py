"""Write, enable, validate and reload the site's virtual hosts."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from typing import Callable, Optional

from lib.config import SiteConfig
from lib.errors import RenderError
from lib.system_utils import run, write_file, read_file
from lib.types import StrList, WebServerKind
from shared.vhost_config import VHostFields, generate_apache_vhost, generate_nginx_vhost


@dataclass(frozen=True)
class ServerLayout:
    service: str
    available_dir: str
    enabled_dir: str
    suffix: str
    test_cmd: str
    generate: Callable[[VHostFields], str]
    modules: tuple = ()

    def config_name(self, domain: str) -> str:
        return f"{domain}{self.suffix}"


NGINX_LAYOUT = ServerLayout(
    service="nginx",
    available_dir="/etc/nginx/sites-available",
    enabled_dir="/etc/nginx/sites-enabled",
    suffix="",
    test_cmd="nginx -t",
    generate=generate_nginx_vhost,
)

APACHE_LAYOUT = ServerLayout(
    service="apache2",
    available_dir="/etc/apache2/sites-available",
    enabled_dir="/etc/apache2/sites-enabled",
    suffix=".conf",
    test_cmd="apache2ctl configtest",
    generate=generate_apache_vhost,
    modules=("proxy", "proxy_http", "headers"),
)

LAYOUTS = {
    "nginx": NGINX_LAYOUT,
    "apache2": APACHE_LAYOUT,
}


def _enable_site(layout: ServerLayout, config_file: str, enabled_link: str) -> None:
    if layout.service == "apache2":
        run(f"a2enmod -q {' '.join(layout.modules)}", check=False)
        run(f"a2ensite -q {shlex.quote(os.path.basename(config_file))}", check=False)
    else:
        run(f"ln -sf {shlex.quote(config_file)} {shlex.quote(enabled_link)}")


def _restore(config_file: str, enabled_link: str, previous: Optional[str], link_existed: bool) -> None:
    if previous is None:
        if os.path.exists(config_file):
            os.remove(config_file)
    else:
        write_file(config_file, previous, mode=0o644)

    if not link_existed and os.path.lexists(enabled_link):
        os.remove(enabled_link)


def install_vhost(layout: ServerLayout, fields: VHostFields) -> str:
    """Write and activate one vhost; a config that fails validation is rolled back."""
    content = layout.generate(fields)
    name = layout.config_name(fields.domain)
    config_file = os.path.join(layout.available_dir, name)
    enabled_link = os.path.join(layout.enabled_dir, name)

    previous = read_file(config_file)
    link_existed = os.path.lexists(enabled_link)

    write_file(config_file, content, mode=0o644)
    print(f"  ✓ Created {layout.service} config: {config_file}")
    _enable_site(layout, config_file, enabled_link)

    result = run(layout.test_cmd, check=False, capture_output=True)
    if result.returncode != 0:
        print(f"  ⚠ {layout.service} configuration test failed, restoring previous config")
        _restore(config_file, enabled_link, previous, link_existed)
        detail = (result.stderr or "").strip().splitlines()
        raise RenderError(
            f"{layout.test_cmd} failed" + (f": {detail[-1]}" if detail else ""),
            remediation=layout.test_cmd
        )

    result = run(f"systemctl reload {layout.service}", check=False)
    if result.returncode != 0:
        raise RenderError(
            f"{layout.service} reload failed",
            remediation=f"systemctl reload {layout.service}"
        )
    print(f"  ✓ {layout.service} vhost configured")
    return config_file


def render(kind: WebServerKind, config: SiteConfig, webhook_port: int) -> StrList:
    fields = VHostFields(
        domain=config.domain,
        webroot=config.webroot,
        webhook_port=webhook_port,
        hook_id=config.hook_id,
    )
    written = []
    for service in kind.active_servers():
        written.append(install_vhost(LAYOUTS[service], fields))
    return written


def configure_vhosts(ctx) -> None:
    render(ctx.capabilities.web_server_kind, ctx.config, ctx.config.webhook_port)
