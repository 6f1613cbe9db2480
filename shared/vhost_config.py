"""Virtual host configuration generator for nginx and apache2."""

from __future__ import annotations

import re
from dataclasses import dataclass

from lib.config import WEBHOOK_PATH
from lib.errors import RenderError
from lib.validators import validate_domain, validate_port


SECURITY_HEADERS = (
    ("X-Frame-Options", "SAMEORIGIN"),
    ("X-Content-Type-Options", "nosniff"),
)


@dataclass(frozen=True)
class VHostFields:
    """Values substituted into a vhost template, checked before rendering."""
    domain: str
    webroot: str
    webhook_port: int
    hook_id: str

    @property
    def server_names(self) -> tuple:
        return (self.domain, f"www.{self.domain}")

    @property
    def webhook_target(self) -> str:
        return f"http://127.0.0.1:{self.webhook_port}/hooks/{self.hook_id}"

    def validate(self) -> None:
        if not validate_domain(self.domain):
            raise RenderError(f"Invalid domain for vhost: {self.domain!r}")
        if not self.webroot.startswith('/') or not re.match(r'^[A-Za-z0-9._/\-]+$', self.webroot):
            raise RenderError(f"Invalid webroot for vhost: {self.webroot!r}")
        if not validate_port(self.webhook_port):
            raise RenderError(f"Invalid webhook port for vhost: {self.webhook_port!r}")
        if not re.match(r'^[a-z0-9][a-z0-9\-]*$', self.hook_id):
            raise RenderError(f"Invalid hook id for vhost: {self.hook_id!r}")


def generate_nginx_vhost(fields: VHostFields) -> str:
    """Generate an nginx server block serving the webroot and the webhook proxy."""
    fields.validate()
    headers = "\n".join(
        f'    add_header {name} "{value}" always;' for name, value in SECURITY_HEADERS
    )

    return f"""server {{
    listen 80;
    listen [::]:80;
    server_name {' '.join(fields.server_names)};
    root {fields.webroot};
    index index.html index.htm;

    location / {{
        try_files $uri $uri/ =404;
    }}

    # Webhook endpoint for auto-deploy
    location {WEBHOOK_PATH} {{
        proxy_pass {fields.webhook_target};
        proxy_http_version 1.1;
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
    }}

    # The webroot is a git working copy
    location ~ /\\.(?!well-known) {{
        deny all;
        access_log off;
        log_not_found off;
    }}

    # Security headers
{headers}

    access_log /var/log/nginx/{fields.domain}_access.log;
    error_log  /var/log/nginx/{fields.domain}_error.log;
}}
"""


def generate_apache_vhost(fields: VHostFields) -> str:
    """Generate an apache2 VirtualHost with the same routes as the nginx block."""
    fields.validate()
    headers = "\n".join(
        f'    Header always set {name} "{value}"' for name, value in SECURITY_HEADERS
    )
    aliases = ' '.join(fields.server_names[1:])

    return f"""<VirtualHost *:80>
    ServerName {fields.domain}
    ServerAlias {aliases}
    DocumentRoot {fields.webroot}
    DirectoryIndex index.html index.htm

    <Directory {fields.webroot}>
        Options -Indexes +FollowSymLinks
        AllowOverride All
        Require all granted
    </Directory>

    # Webhook endpoint for auto-deploy
    ProxyPreserveHost On
    ProxyPass {WEBHOOK_PATH} {fields.webhook_target}
    ProxyPassReverse {WEBHOOK_PATH} {fields.webhook_target}

    # The webroot is a git working copy
    RedirectMatch 404 /\\.(?!well-known)

    # Security headers
{headers}

    ErrorLog ${{APACHE_LOG_DIR}}/{fields.domain}_error.log
    CustomLog ${{APACHE_LOG_DIR}}/{fields.domain}_access.log combined
</VirtualHost>
"""
