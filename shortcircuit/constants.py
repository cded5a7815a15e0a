# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

"""Defaults shared by the model, the websocket server and the CLI."""

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080

# Wire keys of a serialized change (kept compatible with the browser client)
KEY_PATH = "IPath"
KEY_SETATTR = "Setattr"
KEY_RMATTR = "Rmattr"
KEY_INSERT = "InsertNode"
KEY_RMNODE = "Rmnode"

# Inbound event keys
EVENT_TYPE = "Type"
EVENT_MESSAGE = "Message"

# The element the demo counter lives in. Must be a direct child of <body>.
COUNTER_ID = "counter"

DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<title>shortcircuit</title>
</head>
<body>
<h1>Clicks are counted on the server</h1>
<button sc-click="increment">Click me</button>
<div id="counter">0</div>
</body>
</html>
"""
