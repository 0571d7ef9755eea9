"""Code emitters: one small function per target, keyed by target id.

Each emitter is a pure function from ``RequestDescriptor`` to source text.
Targets are added by decorating a function with ``@register(...)``; none of
them share state, so changing one never affects another.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from curl2code.errors import JsonReformatFailure, UnsupportedTarget
from curl2code.literals import (
    PHP_STYLE,
    POWERSHELL_STYLE,
    PYTHON_STYLE,
    RUBY_STYLE,
    RUST_STYLE,
    decode_json_body,
    indent_block,
    json_text,
    quote_double,
    quote_powershell,
    quote_rust,
    quote_single,
    quote_verbatim_single,
    render_literal,
)
from curl2code.parser import RequestDescriptor

logger = logging.getLogger(__name__)

STANDARD_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")

EmitFunc = Callable[[RequestDescriptor], str]


@dataclass(frozen=True)
class EmitterTarget:
    """A registered code generator."""

    target_id: str
    emit: EmitFunc
    extension: str
    label: str


@dataclass(frozen=True)
class EmissionResult:
    """Generated source plus the file extension suggested for saving it."""

    target_id: str
    code: str
    extension: str | None = None

    def filename(self, stem: str = "request") -> str:
        if not self.extension:
            return stem
        return f"{stem}.{self.extension}"


_registry: dict[str, EmitterTarget] = {}

#: Read-only view of every registered target, in registration order.
TARGETS = MappingProxyType(_registry)


def register(
    target_id: str, extension: str, label: str
) -> Callable[[EmitFunc], EmitFunc]:
    """Register the decorated function as the emitter for ``target_id``."""

    def decorator(func: EmitFunc) -> EmitFunc:
        if target_id in _registry:
            raise ValueError(f"Emitter already registered: {target_id!r}")
        _registry[target_id] = EmitterTarget(target_id, func, extension, label)
        return func

    return decorator


def get_target(target_id: str) -> EmitterTarget:
    """Look up a target, raising ``UnsupportedTarget`` if it is unknown."""
    try:
        return _registry[target_id]
    except KeyError:
        raise UnsupportedTarget(target_id) from None


def emit(descriptor: RequestDescriptor, target_id: str) -> str:
    """Render ``descriptor`` as source code for ``target_id``.

    Raises:
        UnsupportedTarget: If no emitter is registered under ``target_id``.
    """
    return get_target(target_id).emit(descriptor)


def generate(descriptor: RequestDescriptor, target_id: str) -> EmissionResult:
    """Like ``emit`` but also returns the suggested file extension."""
    target = get_target(target_id)
    return EmissionResult(target_id, target.emit(descriptor), target.extension)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _json_body(descriptor: RequestDescriptor) -> tuple[bool, Any]:
    """Return ``(True, value)`` when the body is JSON-typed and decodes."""
    if descriptor.facets.body_kind != "json" or not descriptor.body:
        return False, None
    try:
        return True, decode_json_body(descriptor.body)
    except JsonReformatFailure as exc:
        logger.debug("Falling back to raw body literal: %s", exc)
        return False, None


def _text_body(descriptor: RequestDescriptor) -> str:
    """The body as text, re-indented when it is well-formed JSON."""
    is_json, value = _json_body(descriptor)
    return json_text(value) if is_json else descriptor.body


def _standard_method(method: str) -> str | None:
    upper = method.upper()
    return upper if upper in STANDARD_METHODS else None


def _method(descriptor: RequestDescriptor) -> str:
    """Standard methods upper-cased, anything else verbatim."""
    return _standard_method(descriptor.method) or descriptor.method


# ---------------------------------------------------------------------------
# JavaScript / Node.js
# ---------------------------------------------------------------------------


def _js_headers(descriptor: RequestDescriptor) -> list[str]:
    lines = ["  headers: {"]
    for key, value in descriptor.headers.items():
        lines.append(f"    {quote_single(key)}: {quote_single(value)},")
    lines.append("  },")
    return lines


def _nodejs_method(descriptor: RequestDescriptor) -> str:
    standard = _standard_method(descriptor.method)
    return standard.lower() if standard else descriptor.method


@register("javascript", "js", "JavaScript (fetch)")
def emit_javascript(descriptor: RequestDescriptor) -> str:
    lines = ["const options = {", f"  method: {quote_single(_method(descriptor))},"]
    if descriptor.headers:
        lines.extend(_js_headers(descriptor))
    if descriptor.body:
        is_json, value = _json_body(descriptor)
        if is_json:
            literal = indent_block(json_text(value), "  ")
            lines.append(f"  body: JSON.stringify({literal}),")
        else:
            lines.append(f"  body: {quote_single(descriptor.body)},")
    lines.extend([
        "};",
        "",
        f"fetch({quote_single(descriptor.url)}, options)",
        "  .then(response => response.text())",
        "  .then(text => console.log(text))",
        "  .catch(error => console.error(error));",
    ])
    return "\n".join(lines) + "\n"


@register("nodejs", "js", "Node.js (axios)")
def emit_nodejs(descriptor: RequestDescriptor) -> str:
    lines = [
        "const axios = require('axios');",
        "",
        "const options = {",
        f"  method: {quote_single(_nodejs_method(descriptor))},",
        f"  url: {quote_single(descriptor.url)},",
    ]
    if descriptor.headers:
        lines.extend(_js_headers(descriptor))
    if descriptor.body:
        is_json, value = _json_body(descriptor)
        body = quote_single(descriptor.body)
        if is_json:
            lines.append(f"  data: {indent_block(json_text(value), '  ')},")
        elif descriptor.facets.body_kind == "form":
            lines.append(f"  data: new URLSearchParams({body}).toString(),")
        else:
            lines.append(f"  data: {body},")
    lines.extend([
        "};",
        "",
        "axios(options)",
        "  .then(response => console.log(response.data))",
        "  .catch(error => console.error(error));",
    ])
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------


def _split_query(url: str) -> tuple[str, list[tuple[str, str]]]:
    """Split ``url`` into its query-less form and the decoded query pairs.

    The URL is returned untouched when it has no query or when any part of
    the query is not a ``key=value`` pair, since re-encoding such a query
    would change it.
    """
    parts = urlsplit(url)
    if not parts.query:
        return url, []
    if any("=" not in pair for pair in parts.query.split("&")):
        return url, []
    params = parse_qsl(parts.query, keep_blank_values=True)
    base = urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment))
    return base, params


def _python_preamble(
    descriptor: RequestDescriptor, comments: bool = False
) -> tuple[list[str], list[str]]:
    """Variable definitions and the matching call arguments."""
    lines: list[str] = []
    url, params = _split_query(descriptor.url)
    args = [quote_single(url)]

    if descriptor.headers:
        if comments:
            lines.append("# Request headers")
        lines.append("headers = {")
        for key, value in descriptor.headers.items():
            lines.append(f"    {quote_single(key)}: {quote_single(value)},")
        lines.extend(["}", ""])
        args.append("headers=headers")

    if params:
        if comments:
            lines.append("# Query string parameters")
        keys = [key for key, _ in params]
        if len(set(keys)) == len(keys):
            lines.append("params = {")
            for key, value in params:
                lines.append(f"    {quote_single(key)}: {quote_single(value)},")
            lines.append("}")
        else:
            # Repeated keys need a list of pairs.
            lines.append("params = [")
            for key, value in params:
                lines.append(f"    ({quote_single(key)}, {quote_single(value)}),")
            lines.append("]")
        lines.append("")
        args.append("params=params")

    if descriptor.body:
        if comments:
            lines.append("# Request body")
        is_json, value = _json_body(descriptor)
        if is_json:
            lines.extend([f"payload = {render_literal(value, PYTHON_STYLE)}", ""])
            args.append("json=payload")
        else:
            lines.extend([f"data = {quote_single(descriptor.body)}", ""])
            args.append("data=data")

    return lines, args


def _python_call(receiver: str, method: str, args: list[str]) -> str:
    standard = _standard_method(method)
    if standard:
        return f"response = {receiver}.{standard.lower()}({', '.join(args)})"
    return (
        f"response = {receiver}.request("
        f"{', '.join([quote_single(method)] + args)})"
    )


@register("python", "py", "Python (requests)")
def emit_python(descriptor: RequestDescriptor) -> str:
    lines = ["import requests", ""]
    preamble, args = _python_preamble(descriptor)
    lines.extend(preamble)
    lines.extend([
        _python_call("requests", descriptor.method, args),
        "",
        "print(response.status_code)",
        "print(response.text)",
    ])
    return "\n".join(lines) + "\n"


@register("python-session", "py", "Python (requests.Session)")
def emit_python_session(descriptor: RequestDescriptor) -> str:
    lines = ["import requests", ""]
    preamble, args = _python_preamble(descriptor)
    lines.extend(preamble)
    lines.append("with requests.Session() as session:")
    lines.extend([
        "    " + _python_call("session", descriptor.method, args),
        "",
        "print(response.status_code)",
        "print(response.text)",
    ])
    return "\n".join(lines) + "\n"


@register("python-commented", "py", "Python (requests, commented)")
def emit_python_commented(descriptor: RequestDescriptor) -> str:
    lines: list[str] = []
    if descriptor.source.strip():
        lines.append("# Generated from this curl command:")
        lines.extend(f"#   {line}" for line in descriptor.source.strip().splitlines())
        lines.append("")
    lines.extend(["import requests", ""])
    preamble, args = _python_preamble(descriptor, comments=True)
    lines.extend(preamble)
    lines.extend([
        "# Send the request",
        _python_call("requests", descriptor.method, args),
        "",
        "# Inspect the response",
        "print(response.status_code)",
        "print(response.text)",
    ])
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# PHP
# ---------------------------------------------------------------------------


@register("php", "php", "PHP (cURL)")
def emit_php(descriptor: RequestDescriptor) -> str:
    lines = [
        "<?php",
        "",
        "$curl = curl_init();",
        "",
        "curl_setopt_array($curl, [",
        f"    CURLOPT_URL => {quote_verbatim_single(descriptor.url)},",
        "    CURLOPT_RETURNTRANSFER => true,",
        "    CURLOPT_ENCODING => '',",
        "    CURLOPT_MAXREDIRS => 10,",
        "    CURLOPT_TIMEOUT => 30,",
        "    CURLOPT_HTTP_VERSION => CURL_HTTP_VERSION_1_1,",
        f"    CURLOPT_CUSTOMREQUEST => {quote_verbatim_single(_method(descriptor))},",
    ]
    if descriptor.body:
        is_json, value = _json_body(descriptor)
        if is_json:
            literal = render_literal(value, PHP_STYLE, level=1)
            lines.append(f"    CURLOPT_POSTFIELDS => json_encode({literal}),")
        else:
            lines.append(
                f"    CURLOPT_POSTFIELDS => {quote_verbatim_single(descriptor.body)},"
            )
    if descriptor.headers:
        lines.append("    CURLOPT_HTTPHEADER => [")
        for key, value in descriptor.headers.items():
            lines.append(f"        {quote_verbatim_single(f'{key}: {value}')},")
        lines.append("    ],")
    lines.extend([
        "]);",
        "",
        "$response = curl_exec($curl);",
        "$err = curl_error($curl);",
        "",
        "curl_close($curl);",
        "",
        "if ($err) {",
        "    echo 'cURL Error #:' . $err;",
        "} else {",
        "    echo $response;",
        "}",
    ])
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Go
# ---------------------------------------------------------------------------


@register("go", "go", "Go (net/http)")
def emit_go(descriptor: RequestDescriptor) -> str:
    imports = ['"fmt"', '"io"', '"net/http"']
    if descriptor.body:
        imports.append('"strings"')
    lines = ["package main", "", "import ("]
    lines.extend(f"\t{name}" for name in imports)
    lines.extend([")", "", "func main() {"])

    payload = "nil"
    if descriptor.body:
        lines.extend([
            f"\tpayload := strings.NewReader({quote_double(_text_body(descriptor))})",
            "",
        ])
        payload = "payload"

    lines.extend([
        f"\treq, err := http.NewRequest({quote_double(_method(descriptor))}, "
        f"{quote_double(descriptor.url)}, {payload})",
        "\tif err != nil {",
        "\t\tpanic(err)",
        "\t}",
    ])
    if descriptor.headers:
        lines.append("")
        for key, value in descriptor.headers.items():
            lines.append(f"\treq.Header.Add({quote_double(key)}, {quote_double(value)})")
    lines.extend([
        "",
        "\tres, err := http.DefaultClient.Do(req)",
        "\tif err != nil {",
        "\t\tpanic(err)",
        "\t}",
        "\tdefer res.Body.Close()",
        "",
        "\tbody, err := io.ReadAll(res.Body)",
        "\tif err != nil {",
        "\t\tpanic(err)",
        "\t}",
        "",
        "\tfmt.Println(res.Status)",
        "\tfmt.Println(string(body))",
        "}",
    ])
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Java
# ---------------------------------------------------------------------------


@register("java", "java", "Java (HttpClient)")
def emit_java(descriptor: RequestDescriptor) -> str:
    lines = [
        "import java.io.IOException;",
        "import java.net.URI;",
        "import java.net.http.HttpClient;",
        "import java.net.http.HttpRequest;",
        "import java.net.http.HttpResponse;",
        "import java.time.Duration;",
        "",
        "public class HttpRequestExample {",
        "    public static void main(String[] args) throws IOException, InterruptedException {",
        "        HttpClient client = HttpClient.newBuilder()",
        "                .connectTimeout(Duration.ofSeconds(30))",
        "                .build();",
        "",
        "        HttpRequest request = HttpRequest.newBuilder()",
        f"                .uri(URI.create({quote_double(descriptor.url)}))",
    ]
    for key, value in descriptor.headers.items():
        lines.append(f"                .header({quote_double(key)}, {quote_double(value)})")
    method = quote_double(_method(descriptor))
    if descriptor.body:
        publisher = (
            f"HttpRequest.BodyPublishers.ofString({quote_double(_text_body(descriptor))})"
        )
    else:
        publisher = "HttpRequest.BodyPublishers.noBody()"
    lines.extend([
        f"                .method({method}, {publisher})",
        "                .build();",
        "",
        "        HttpResponse<String> response = client.send(request, HttpResponse.BodyHandlers.ofString());",
        "",
        "        System.out.println(response.statusCode());",
        "        System.out.println(response.body());",
        "    }",
        "}",
    ])
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Rust
# ---------------------------------------------------------------------------


@register("rust", "rs", "Rust (reqwest)")
def emit_rust(descriptor: RequestDescriptor) -> str:
    lines = [
        "#[tokio::main]",
        "async fn main() -> Result<(), Box<dyn std::error::Error>> {",
        "    let client = reqwest::Client::new();",
        "",
    ]
    url = quote_rust(descriptor.url)
    standard = _standard_method(descriptor.method)
    if standard in ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"):
        builder = f"client.{standard.lower()}({url})"
    else:
        method = quote_rust(_method(descriptor))
        builder = (
            f"client.request(reqwest::Method::from_bytes({method}.as_bytes())?, {url})"
        )
    lines.append(f"    let response = {builder}")
    for key, value in descriptor.headers.items():
        lines.append(f"        .header({quote_rust(key)}, {quote_rust(value)})")
    if descriptor.body:
        is_json, value = _json_body(descriptor)
        if is_json:
            literal = render_literal(value, RUST_STYLE, level=2)
            lines.append(f"        .json(&serde_json::json!({literal}))")
        else:
            lines.append(f"        .body({quote_rust(descriptor.body)})")
    lines.extend([
        "        .send()",
        "        .await?;",
        "",
        '    println!("Status: {}", response.status());',
        '    println!("Body: {}", response.text().await?);',
        "",
        "    Ok(())",
        "}",
    ])
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# C#
# ---------------------------------------------------------------------------


@register("csharp", "cs", "C# (HttpClient)")
def emit_csharp(descriptor: RequestDescriptor) -> str:
    lines = [
        "using System;",
        "using System.Net.Http;",
        "using System.Text;",
        "using System.Threading.Tasks;",
        "",
        "class Program",
        "{",
        "    static async Task Main(string[] args)",
        "    {",
        "        using var client = new HttpClient();",
        "        using var request = new HttpRequestMessage(",
        f"            new HttpMethod({quote_double(_method(descriptor))}), "
        f"{quote_double(descriptor.url)});",
    ]
    if descriptor.body:
        lines.extend([
            f"        request.Content = new StringContent({quote_double(_text_body(descriptor))}, Encoding.UTF8);",
            "        request.Content.Headers.Remove(\"Content-Type\");",
        ])
    if descriptor.headers:
        lines.append("")
    for key, value in descriptor.headers.items():
        # Content headers are only accepted on HttpContent.
        owner = (
            "request.Content.Headers"
            if descriptor.body and key.lower().startswith("content-")
            else "request.Headers"
        )
        lines.append(
            f"        {owner}.TryAddWithoutValidation({quote_double(key)}, {quote_double(value)});"
        )
    lines.extend([
        "",
        "        using var response = await client.SendAsync(request);",
        "        var body = await response.Content.ReadAsStringAsync();",
        "",
        "        Console.WriteLine((int)response.StatusCode);",
        "        Console.WriteLine(body);",
        "    }",
        "}",
    ])
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Ruby
# ---------------------------------------------------------------------------


@register("ruby", "rb", "Ruby (Net::HTTP)")
def emit_ruby(descriptor: RequestDescriptor) -> str:
    is_json, value = _json_body(descriptor)
    lines = ["require 'net/http'", "require 'uri'"]
    if is_json:
        lines.append("require 'json'")
    lines.extend([
        "",
        f"uri = URI.parse({quote_verbatim_single(descriptor.url)})",
        "http = Net::HTTP.new(uri.host, uri.port)",
        "http.use_ssl = uri.scheme == 'https'",
        "",
    ])

    standard = _standard_method(descriptor.method)
    if standard:
        lines.append(
            f"request = Net::HTTP::{standard.capitalize()}.new(uri.request_uri)"
        )
    else:
        has_body = "true" if descriptor.body else "false"
        method = quote_verbatim_single(descriptor.method)
        lines.append(
            f"request = Net::HTTPGenericRequest.new({method}, {has_body}, true, uri.request_uri)"
        )

    for key, header_value in descriptor.headers.items():
        lines.append(
            f"request[{quote_verbatim_single(key)}] = {quote_verbatim_single(header_value)}"
        )
    if descriptor.body:
        if is_json:
            lines.append(f"request.body = JSON.generate({render_literal(value, RUBY_STYLE)})")
        else:
            lines.append(f"request.body = {quote_verbatim_single(descriptor.body)}")
    lines.extend([
        "",
        "response = http.request(request)",
        "",
        "puts response.code",
        "puts response.body",
    ])
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# PowerShell
# ---------------------------------------------------------------------------


@register("powershell", "ps1", "PowerShell (Invoke-RestMethod)")
def emit_powershell(descriptor: RequestDescriptor) -> str:
    lines: list[str] = []
    if descriptor.headers:
        lines.append("$headers = [ordered]@{")
        for key, value in descriptor.headers.items():
            lines.append(f"    {quote_powershell(key)} = {quote_powershell(value)}")
        lines.extend(["}", ""])

    if descriptor.body:
        is_json, value = _json_body(descriptor)
        if is_json:
            lines.extend([
                f"$payload = {render_literal(value, POWERSHELL_STYLE)}",
                "$body = ConvertTo-Json -InputObject $payload -Depth 10",
                "",
            ])
        else:
            lines.extend([f"$body = {quote_powershell(descriptor.body)}", ""])

    lines.extend([
        "$params = @{",
        f"    Uri = {quote_powershell(descriptor.url)}",
        f"    Method = {quote_powershell(_method(descriptor))}",
    ])
    if descriptor.headers:
        lines.append("    Headers = $headers")
    if descriptor.body:
        lines.append("    Body = $body")
    lines.extend([
        "}",
        "",
        "$response = Invoke-RestMethod @params",
        "$response | ConvertTo-Json -Depth 10",
    ])
    return "\n".join(lines) + "\n"
