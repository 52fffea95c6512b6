"""HTTP surface: an index page and the ``/events`` snapshot stream."""

from __future__ import annotations

import html
import logging
import secrets
import uuid

from aiohttp import web

from n26a_bt._constants import BUILD_MESSAGE
from n26a_bt.exceptions import N26aFatalInitError
from n26a_bt.hub import BroadcastHub

_logger = logging.getLogger(__name__)

HUB_KEY = web.AppKey("hub", BroadcastHub)
TITLE_KEY = web.AppKey("title", str)

DEFAULT_TITLE = "Bluetooth occupancy count"

_INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
<style nonce="{nonce}">
body{{font-family:system-ui,sans-serif;margin:0;background:#fafafa;color:#222}}
main{{padding:1rem 2rem}}
#SystemStatus{{display:flex;justify-content:space-between;padding:.5rem 2rem;background:#ddd}}
#SystemStatus.OK{{background:#d8f0d8}}
#SystemStatus.ERR{{background:#f6d6d6;color:#900}}
#loading-bar{{height:3px;background:transparent}}
#loading-bar.enable{{background:linear-gradient(90deg,#4a4,#8d8,#4a4);background-size:200% 100%;animation:flow 2s linear infinite}}
@keyframes flow{{from{{background-position:0 0}}to{{background-position:200% 0}}}}
#deviceCount{{font-size:4rem;font-weight:700}}
pre{{background:#fff;border:1px solid #ddd;padding:1rem;overflow:auto}}
details{{border-bottom:1px solid #eee;padding:.25rem 0}}
summary{{cursor:pointer}}
.count{{margin-left:1rem;font-weight:600}}
#log_output .err{{color:orange}}
</style>
</head>
<body>
<div id="SystemStatus"><span id="SystemStatusText">Connecting…</span><time id="time"></time></div>
<div id="loading-bar"></div>
<main>
<h1>{title}</h1>
<p><span id="deviceCount">-</span> device(s)</p>
<pre id="currentScanResultOutput">no data</pre>
<h2>History</h2>
<div id="resultDetails"></div>
<h2>Log</h2>
<pre id="log_output"><code></code></pre>
</main>
<footer><small>{message}</small></footer>
<script nonce="{nonce}">
const HISTORY_KEY = "resultDetailsBackup";
const HISTORY_LIMIT = 100;
const resultDetails = document.getElementById("resultDetails");

const loadHistory = () => {{
  try {{
    return JSON.parse(window.sessionStorage.getItem(HISTORY_KEY) || "[]");
  }} catch (err) {{
    return [];
  }}
}};

const renderEntry = (entry) => {{
  const details = document.createElement("details");
  const summary = document.createElement("summary");
  summary.textContent = "#" + entry.id;
  const count = document.createElement("span");
  count.className = "count";
  count.textContent = entry.count + " device(s)";
  summary.appendChild(count);
  const code = document.createElement("code");
  code.textContent = entry.result;
  const pre = document.createElement("pre");
  pre.appendChild(code);
  details.append(summary, pre);
  return details;
}};

let entries = loadHistory();
entries.forEach((entry) => resultDetails.append(renderEntry(entry)));

const appendLog = (message, isError = false) => {{
  const line = document.createElement("div");
  line.textContent = message;
  if (isError) {{
    line.className = "err";
  }}
  document.querySelector("#log_output code").appendChild(line);
}};

const setStatus = (ok, text) => {{
  const bar = document.getElementById("SystemStatus");
  bar.classList.toggle("OK", ok);
  bar.classList.toggle("ERR", !ok);
  document.getElementById("SystemStatusText").textContent = text;
  document.getElementById("loading-bar").classList.toggle("enable", ok);
}};

const source = new EventSource("/events");
source.onopen = () => setStatus(true, "Normal");
source.onerror = () => setStatus(false, "An error occurred while attempting to sync.");
source.onmessage = (event) => {{
  const devices = JSON.parse(event.data);
  const entry = {{
    id: event.lastEventId,
    count: Object.keys(devices).length,
    result: JSON.stringify(devices, null, 2),
  }};
  document.getElementById("deviceCount").textContent = entry.count;
  document.getElementById("currentScanResultOutput").textContent = entry.count ? entry.result : "no data";
  resultDetails.prepend(renderEntry(entry));
  entries = [entry].concat(entries).slice(0, HISTORY_LIMIT);
  while (resultDetails.childElementCount > HISTORY_LIMIT) {{
    resultDetails.lastElementChild.remove();
  }}
  window.sessionStorage.setItem(HISTORY_KEY, JSON.stringify(entries));
}};

const clock = new Intl.DateTimeFormat(window.navigator.language, {{
  year: "numeric", month: "2-digit", day: "2-digit",
  hour: "2-digit", minute: "2-digit", second: "2-digit",
}});
setInterval(() => {{
  document.getElementById("time").textContent = clock.format(new Date());
}}, 850);

const requestWakeLock = async () => {{
  try {{
    await navigator.wakeLock.request("screen");
    appendLog("Wake Lock is active");
  }} catch (err) {{
    appendLog("Failed to request Wake Lock: " + err.name + ", " + err.message, true);
  }}
}};
document.addEventListener("visibilitychange", () => {{
  if (document.visibilityState === "visible") {{
    requestWakeLock();
  }}
}});
requestWakeLock().then(() => appendLog("Wake Lock initialized"));
</script>
</body>
</html>
"""


def new_event_id() -> str:
    """Fresh unique id for one stream event.

    Raises
    ------
    N26aFatalInitError
        If the system random source is unavailable.
    """
    try:
        return str(uuid.uuid4())
    except (OSError, NotImplementedError) as exc:
        raise N26aFatalInitError(f"Failed to generate event id: {exc}") from exc


def new_nonce(length: int = 32) -> str:
    """URL-safe random nonce for the Content-Security-Policy header."""
    try:
        return secrets.token_urlsafe(length)
    except (OSError, NotImplementedError) as exc:
        raise N26aFatalInitError(f"Failed to read random bytes: {exc}") from exc


def format_event(message: str, event_id: str) -> str:
    """Frame *message* as a server-sent event record."""
    return f"data: {message}\nid:{event_id}\n\n"


def security_headers(nonce: str) -> dict[str, str]:
    policy = (
        f"script-src 'strict-dynamic' 'nonce-{nonce}' 'unsafe-inline' https:; "
        f"style-src 'self' 'nonce-{nonce}' 'unsafe-inline'; "
        "frame-src 'none'; frame-ancestors 'none'; form-action 'self'; "
        "base-uri 'self'; object-src 'none'; "
        f"style-src-elem 'nonce-{nonce}'; default-src *;upgrade-insecure-requests;"
    )
    return {
        "Content-Security-Policy": policy,
        "X-Frame-Options": "DENY",
        "X-Xss-Protection": "0",
        "X-Content-Type-Options": "nosniff",
        "Cache-Control": "max-age=20, private, stale-while-revalidate=3600",
        "Referrer-Policy": "no-referrer",
        "Cross-Origin-Opener-Policy": "same-origin",
    }


async def index(request: web.Request) -> web.Response:
    try:
        nonce = new_nonce()
    except N26aFatalInitError:
        _logger.exception("Cannot render index page")
        raise web.HTTPInternalServerError(text="internal server error") from None

    body = _INDEX_HTML.format(
        title=html.escape(request.app[TITLE_KEY]),
        message=html.escape(BUILD_MESSAGE),
        nonce=nonce,
    )
    return web.Response(text=body, content_type="text/html", headers=security_headers(nonce))


async def events(request: web.Request) -> web.StreamResponse:
    """Stream every published snapshot to one viewer until it disconnects."""
    hub = request.app[HUB_KEY]
    subscription = hub.subscribe()
    response = web.StreamResponse(
        headers={
            "Content-Type": "text/event-stream",
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )
    try:
        await response.prepare(request)
        async for message in subscription:
            await response.write(format_event(message, new_event_id()).encode("utf-8"))
    except ConnectionResetError:
        _logger.debug("Viewer %s disconnected", subscription.id)
    except N26aFatalInitError:
        _logger.exception("Ending event stream %s", subscription.id)
    finally:
        hub.unsubscribe(subscription)
    return response


def create_app(hub: BroadcastHub, *, title: str = DEFAULT_TITLE) -> web.Application:
    """Build the web application serving *hub*.

    Raises
    ------
    N26aFatalInitError
        If identifiers cannot be generated on this system.
    """
    new_event_id()
    new_nonce()

    app = web.Application()
    app[HUB_KEY] = hub
    app[TITLE_KEY] = title
    app.router.add_get("/", index)
    app.router.add_get("/events", events)

    async def _close_streams(_app: web.Application) -> None:
        hub.close()

    app.on_shutdown.append(_close_streams)
    return app


async def start_site(app: web.Application, host: str, port: int) -> web.AppRunner:
    """Start serving *app*; the caller owns ``runner.cleanup()``.

    Viewer disconnects cancel their handlers so subscriptions are
    released without waiting for the next snapshot.
    """
    runner = web.AppRunner(app, handler_cancellation=True)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    _logger.info("Web server listening on http://%s:%d/", host, port)
    return runner
