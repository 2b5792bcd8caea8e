"""Minimal stand-in for the Tailwind CSS language server used by bridge tests.

Flags:
    --silent          never publish diagnostics
    --exit-on-open    exit as soon as a document is opened
    --no-initialize   never answer the initialize request
    --garbage         write a malformed frame before every message
    --bad-shapes      send well-framed messages with unexpected shapes on open
"""

import json
import re
import sys

CANONICAL = {
    "flex-grow": "grow",
    "mt-[2px]": "mt-0.5",
    "break-words": "wrap-break-word",
}

DECLARATIONS = {
    "mt-4": ["margin-top: 1rem"],
    "mt-6": ["margin-top: 1.5rem"],
    "my-2": ["margin-top: 0.5rem", "margin-bottom: 0.5rem"],
    "p-4": ["padding: 1rem"],
    "shadow": ["--tw-shadow: 0 1px 3px", "box-shadow: var(--tw-shadow)"],
}

FLAGS = set(sys.argv[1:])
documents = {}
configuration = {"received": None, "waiting": None}


def write(message):
    body = json.dumps(message).encode("utf-8")
    if "--garbage" in FLAGS:
        junk = b"{not json"
        sys.stdout.buffer.write(b"Content-Length: %d\r\n\r\n%s" % (len(junk), junk))
    sys.stdout.buffer.write(b"Content-Length: %d\r\n\r\n" % len(body) + body)
    sys.stdout.buffer.flush()


def read():
    length = None
    while True:
        line = sys.stdin.buffer.readline()
        if not line:
            return None
        if line in (b"\r\n", b"\n"):
            break
        name, _, value = line.decode("ascii").partition(":")
        if name.strip().lower() == "content-length":
            length = int(value.strip())
    return json.loads(sys.stdin.buffer.read(length).decode("utf-8"))


def diagnostics_for(text):
    diagnostics = []
    for original, canonical in CANONICAL.items():
        if re.search(r"(?<![\w-])" + re.escape(original) + r"(?![\w-])", text):
            diagnostics.append(
                {
                    "code": "suggestCanonicalClasses",
                    "message": f"The class `{original}` can be written as `{canonical}`",
                    "severity": 4,
                }
            )
    diagnostics.append({"code": "cssConflict", "message": "'`a` and `b` conflict'", "severity": 2})
    return diagnostics


def hover(params):
    text = documents.get(params["textDocument"]["uri"], "")
    match = re.search(r'class="([^"]*)"', text)
    if not match:
        return None
    class_name = match.group(1).strip()
    lines = DECLARATIONS.get(class_name)
    if lines is None:
        return None
    body = "\n".join(f"  {line};" for line in lines)
    return {"contents": {"kind": "markdown", "value": f"```css\n.{class_name} {{\n{body}\n}}\n```"}}


def main():
    while True:
        message = read()
        if message is None:
            return

        method = message.get("method")
        message_id = message.get("id")

        if method is None:
            if message_id == "cfg-1":
                configuration["received"] = message.get("result")
                if configuration["waiting"] is not None:
                    write({"jsonrpc": "2.0", "id": configuration["waiting"], "result": configuration["received"]})
            continue

        if method == "initialize":
            if "--no-initialize" not in FLAGS:
                write({"jsonrpc": "2.0", "id": message_id, "result": {"capabilities": {}}})
        elif method == "initialized":
            write(
                {
                    "jsonrpc": "2.0",
                    "id": "cfg-1",
                    "method": "workspace/configuration",
                    "params": {"items": [{"section": "tailwindCSS"}, {"section": "editor"}]},
                }
            )
        elif method == "textDocument/didOpen":
            if "--exit-on-open" in FLAGS:
                sys.exit(3)
            document = message["params"]["textDocument"]
            documents[document["uri"]] = document["text"]
            write({"jsonrpc": "2.0", "method": "window/logMessage", "params": {"message": "opened"}})
            if "--bad-shapes" in FLAGS:
                write({"jsonrpc": "2.0", "method": "textDocument/publishDiagnostics", "params": [1]})
                write({"jsonrpc": "2.0", "id": [1], "result": None})
                write({"jsonrpc": "2.0", "id": "cfg-bad", "method": "workspace/configuration", "params": [1]})
                write({"jsonrpc": "2.0", "method": 7})
                write([1, 2])
            if "--silent" not in FLAGS:
                write(
                    {
                        "jsonrpc": "2.0",
                        "method": "textDocument/publishDiagnostics",
                        "params": {
                            "uri": document["uri"],
                            "diagnostics": diagnostics_for(document["text"]),
                        },
                    }
                )
        elif method == "textDocument/didClose":
            documents.pop(message["params"]["textDocument"]["uri"], None)
        elif method == "textDocument/hover":
            write({"jsonrpc": "2.0", "id": message_id, "result": hover(message["params"])})
        elif method == "fake/configuration":
            if configuration["received"] is None:
                configuration["waiting"] = message_id
            else:
                write({"jsonrpc": "2.0", "id": message_id, "result": configuration["received"]})
        elif method == "shutdown":
            write({"jsonrpc": "2.0", "id": message_id, "result": None})
        elif method == "exit":
            return
        elif message_id is not None:
            write(
                {
                    "jsonrpc": "2.0",
                    "id": message_id,
                    "error": {"code": -32601, "message": f"Method not found: {method}"},
                }
            )


if __name__ == "__main__":
    main()
