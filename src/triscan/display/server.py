"""
FastAPI server for the scanner dashboard.

Serves the operator table and profit chart, and streams the engine's
change feed to browsers over a websocket.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Literal

import orjson
from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse

from triscan import __version__
from triscan.config.settings import get_settings
from triscan.core.engine import ScannerEngine
from triscan.core.event_bus import Event, EventBus, EventType
from triscan.core.types import ProfitSample, RowView
from triscan.display.render import build_row


logger = logging.getLogger(__name__)


# Websocket message type per bus event
MESSAGE_TYPES: dict[EventType, str] = {
    EventType.OPPORTUNITY_UPSERTED: "upsert",
    EventType.PROFIT_SAMPLE: "profit",
    EventType.FEED_ERROR: "error",
    EventType.CONNECTED: "status",
    EventType.DISCONNECTED: "status",
}


def encode_message(message_type: str, data: Any) -> str:
    return orjson.dumps({"type": message_type, "data": data}).decode()


def event_data(event: Event[Any]) -> Any:
    """JSON-ready payload of a bus event."""
    payload = event.payload
    if isinstance(payload, (RowView, ProfitSample)):
        return payload.to_dict()
    if event.type is EventType.FEED_ERROR:
        return {"message": str(payload), "source": event.source}
    if event.type in (EventType.CONNECTED, EventType.DISCONNECTED):
        return {"connected": event.type is EventType.CONNECTED}
    return payload


class DashboardBroadcaster:
    """Relays bus events to every connected browser."""

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._clients: list[WebSocket] = []
        for event_type in MESSAGE_TYPES:
            bus.subscribe(event_type, self.on_event)

    def add(self, client: WebSocket) -> None:
        self._clients.append(client)

    def remove(self, client: WebSocket) -> None:
        if client in self._clients:
            self._clients.remove(client)

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def on_event(self, event: Event[Any]) -> None:
        await self.broadcast(MESSAGE_TYPES[event.type], event_data(event))

    async def broadcast(self, message_type: str, data: Any) -> None:
        if not self._clients:
            return

        message = encode_message(message_type, data)
        disconnected = []
        for client in self._clients:
            try:
                await client.send_text(message)
            except Exception:
                disconnected.append(client)
        for client in disconnected:
            self.remove(client)

    def close(self) -> None:
        """Detach from the bus."""
        for event_type in MESSAGE_TYPES:
            self._bus.unsubscribe(event_type, self.on_event)
        self._clients.clear()


def _engine(app: FastAPI) -> ScannerEngine:
    return app.state.engine  # type: ignore[no-any-return]


def _rows(
    engine: ScannerEngine,
    filter_term: str = "",
    sort_by: str | None = None,
    descending: bool = False,
) -> list[dict[str, Any]]:
    settings = engine.settings
    return [
        build_row(entry, settings.trade_url_template, settings.reference_asset).to_dict()
        for entry in engine.ledger.rows(filter_term, sort_by, descending)
    ]


def _history(engine: ScannerEngine) -> list[dict[str, Any]]:
    return [sample.to_dict() for sample in engine.ledger.profit_history]


def create_app(engine: ScannerEngine | None = None, run_engine: bool = True) -> FastAPI:
    """
    Build the dashboard application.

    Args:
        engine: Engine to display; one is built from settings at startup
            when omitted.
        run_engine: Set up and start the engine with the app, and shut it
            down on exit.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        scanner = engine or ScannerEngine(get_settings())
        app.state.engine = scanner
        app.state.broadcaster = DashboardBroadcaster(scanner.bus)

        if run_engine:
            await scanner.setup()
            scanner.start(with_reporter=False)

        yield

        app.state.broadcaster.close()
        if run_engine:
            await scanner.shutdown()

    app = FastAPI(title="Triangular Scanner", version=__version__, lifespan=lifespan)

    @app.get("/", response_class=HTMLResponse)
    async def get_dashboard() -> HTMLResponse:
        return HTMLResponse(content=DASHBOARD_HTML)

    @app.get("/api/opportunities")
    async def get_opportunities(
        request: Request,
        filter: str = "",
        sort: Literal["route", "profit", "status", "liquidity", "score"] | None = None,
        order: Literal["asc", "desc"] = "asc",
    ) -> dict[str, Any]:
        scanner = _engine(request.app)
        try:
            rows = _rows(scanner, filter, sort, order == "desc")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return {"count": len(rows), "total": len(scanner.ledger), "rows": rows}

    @app.get("/api/profit-history")
    async def get_profit_history(request: Request) -> dict[str, Any]:
        return {"samples": _history(_engine(request.app))}

    @app.get("/api/status")
    async def get_status(request: Request) -> dict[str, Any]:
        scanner = _engine(request.app)
        state = scanner.pipeline_state()
        return {
            "running": scanner.is_running,
            "connected": state.connected,
            "reference_asset": scanner.settings.reference_asset,
            "fee_percent": scanner.settings.fee_percent,
            "quotes": state.quote_count,
            "routes": state.route_count,
            "valid_routes": state.valid_routes,
            "metrics": scanner.metrics.to_dict(),
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        scanner = _engine(websocket.app)
        broadcaster: DashboardBroadcaster = websocket.app.state.broadcaster

        await websocket.accept()
        await websocket.send_text(
            encode_message(
                "init",
                {
                    "rows": _rows(scanner),
                    "history": _history(scanner),
                    "connected": scanner.pipeline_state().connected,
                },
            )
        )
        broadcaster.add(websocket)

        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            broadcaster.remove(websocket)

    return app


DASHBOARD_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Triangular Scanner</title>
    <script src="https://cdn.jsdelivr.net/npm/chart.js"></script>
    <style>
        :root {
            --bg: #09090b; --bg2: #18181b; --bg3: #27272a;
            --border: #3f3f46; --text: #fafafa; --text2: #a1a1aa; --text3: #71717a;
            --accent: #3b82f6; --green: #22c55e; --red: #ef4444; --yellow: #eab308;
        }
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body { font-family: -apple-system, BlinkMacSystemFont, "Inter", sans-serif; background: var(--bg); color: var(--text); min-height: 100vh; }
        .app { max-width: 1200px; margin: 0 auto; padding: 32px 24px; }

        .header { display: flex; justify-content: space-between; align-items: center; margin-bottom: 20px; gap: 16px; }
        .logo { display: flex; align-items: center; gap: 12px; }
        .logo-icon { width: 36px; height: 36px; background: linear-gradient(135deg, var(--accent), #8b5cf6); border-radius: 10px; }
        .logo-text { font-size: 20px; font-weight: 600; }

        .status { display: flex; align-items: center; gap: 8px; padding: 6px 12px; border-radius: 6px; font-size: 13px; font-weight: 500; }
        .status.off { background: rgba(239,68,68,0.1); color: var(--red); }
        .status.on { background: rgba(34,197,94,0.1); color: var(--green); }
        .status-dot { width: 6px; height: 6px; border-radius: 50%; background: currentColor; }

        .error { min-height: 20px; margin-bottom: 12px; font-size: 13px; color: var(--yellow); }

        .card { background: var(--bg2); border: 1px solid var(--border); border-radius: 12px; overflow: hidden; margin-bottom: 20px; }
        .card-header { display: flex; justify-content: space-between; align-items: center; padding: 14px 18px; border-bottom: 1px solid var(--border); font-size: 12px; font-weight: 500; color: var(--text2); text-transform: uppercase; letter-spacing: 0.05em; }
        .card-body { padding: 12px 18px; }
        .filter { background: var(--bg3); border: 1px solid var(--border); border-radius: 6px; color: var(--text); padding: 6px 10px; font-size: 13px; }

        table { width: 100%; border-collapse: collapse; font-size: 13px; font-variant-numeric: tabular-nums; }
        th { text-align: left; padding: 10px 12px; color: var(--text3); font-weight: 500; cursor: pointer; user-select: none; }
        td { padding: 10px 12px; border-top: 1px solid var(--border); }
        tr.profitable td { background: rgba(34,197,94,0.06); }
        a.pair-link { color: var(--accent); text-decoration: none; }
        .badge-high { color: var(--green); font-weight: 600; }
        .badge-low { color: var(--red); font-weight: 600; }
        .empty { padding: 40px; text-align: center; color: var(--text3); }
    </style>
</head>
<body>
<div class="app">
    <div class="header">
        <div class="logo"><div class="logo-icon"></div><div class="logo-text">Triangular Scanner</div></div>
        <div class="status off" id="status"><span class="status-dot"></span><span id="statusText">Disconnected</span></div>
    </div>

    <div class="error" id="errorMessage"></div>

    <div class="card">
        <div class="card-header">Max Profit (%)</div>
        <div class="card-body"><canvas id="profitChart" height="80"></canvas></div>
    </div>

    <div class="card">
        <div class="card-header">
            <span>Opportunities (<span id="rowCount">0</span>)</span>
            <input class="filter" id="filterInput" placeholder="Filter pairs...">
        </div>
        <table id="arbitrageTable">
            <thead>
                <tr>
                    <th data-sort="route">Route</th>
                    <th data-sort="profit">Profit %</th>
                    <th data-sort="status">Status</th>
                    <th data-sort="liquidity">Liquidity</th>
                    <th>Prices</th>
                    <th data-sort="score">AI Score</th>
                    <th>Advice</th>
                </tr>
            </thead>
            <tbody id="results"></tbody>
        </table>
        <div class="empty" id="empty">Waiting for opportunities...</div>
    </div>
</div>

<script>
const rows = new Map();
let sortKey = null;
let sortDir = 1;
let filterTerm = '';
let chart = null;

const esc = s => String(s).replace(/[&<>"]/g, c => ({'&': '&amp;', '<': '&lt;', '>': '&gt;', '"': '&quot;'}[c]));

function sortValue(row, key) {
    switch (key) {
        case 'route': return row.legs.join(' → ');
        case 'profit': return row.profit_pct;
        case 'status': return row.status;
        case 'liquidity': return parseFloat(row.liquidity);
        case 'score': return row.score;
    }
    return 0;
}

function renderTable() {
    let view = Array.from(rows.values());
    if (filterTerm) view = view.filter(r => r.legs.join(' → ').toUpperCase().includes(filterTerm));
    if (sortKey) {
        view.sort((a, b) => {
            const x = sortValue(a, sortKey), y = sortValue(b, sortKey);
            const cmp = typeof x === 'number' && typeof y === 'number' ? x - y : String(x).localeCompare(String(y));
            return cmp * sortDir;
        });
    }
    document.getElementById('results').innerHTML = view.map(r => `
        <tr id="${esc(r.key)}" class="${r.is_valid ? 'profitable' : ''}">
            <td>${r.legs.map((leg, i) => `<a class="pair-link" href="${esc(r.links[i])}" target="_blank">${esc(leg)}</a>`).join(' → ')}</td>
            <td>${esc(r.profit)}</td>
            <td><span class="${r.is_valid ? 'badge-high' : 'badge-low'}">${esc(r.status)}</span></td>
            <td>${esc(r.liquidity)}</td>
            <td>${esc(r.prices)}</td>
            <td>${r.score}</td>
            <td>${esc(r.advice)}</td>
        </tr>`).join('');
    document.getElementById('rowCount').textContent = rows.size;
    document.getElementById('empty').style.display = rows.size ? 'none' : 'block';
}

function ensureChart() {
    if (chart) return chart;
    chart = new Chart(document.getElementById('profitChart').getContext('2d'), {
        type: 'line',
        data: { labels: [], datasets: [{ label: 'Max Profit (%)', data: [], borderColor: '#3b82f6', tension: 0.2 }] },
        options: { responsive: true, animation: false, scales: { y: { beginAtZero: true } } }
    });
    return chart;
}

function addSample(sample) {
    const c = ensureChart();
    c.data.labels.push(sample.label);
    c.data.datasets[0].data.push(sample.max_profit_pct);
    c.update();
}

function setConnected(on) {
    document.getElementById('status').className = 'status ' + (on ? 'on' : 'off');
    document.getElementById('statusText').textContent = on ? 'Live' : 'Disconnected';
}

function connect() {
    const proto = location.protocol === 'https:' ? 'wss' : 'ws';
    const ws = new WebSocket(`${proto}://${location.host}/ws`);
    ws.onmessage = e => {
        const msg = JSON.parse(e.data);
        if (msg.type === 'init') {
            msg.data.rows.forEach(r => rows.set(r.key, r));
            msg.data.history.forEach(addSample);
            setConnected(msg.data.connected);
            renderTable();
        } else if (msg.type === 'upsert') {
            rows.set(msg.data.key, msg.data);
            renderTable();
        } else if (msg.type === 'profit') {
            addSample(msg.data);
        } else if (msg.type === 'error') {
            document.getElementById('errorMessage').textContent = msg.data.message;
        } else if (msg.type === 'status') {
            setConnected(msg.data.connected);
            if (msg.data.connected) document.getElementById('errorMessage').textContent = '';
        }
    };
    ws.onclose = () => { setConnected(false); setTimeout(connect, 5000); };
}

document.querySelectorAll('th[data-sort]').forEach(th => {
    th.addEventListener('click', () => {
        sortDir = sortKey === th.dataset.sort ? -sortDir : 1;
        sortKey = th.dataset.sort;
        renderTable();
    });
});

let filterTimer;
document.getElementById('filterInput').addEventListener('input', e => {
    clearTimeout(filterTimer);
    filterTimer = setTimeout(() => { filterTerm = e.target.value.trim().toUpperCase(); renderTable(); }, 300);
});

renderTable();
connect();
</script>
</body>
</html>"""


app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║              TRIANGULAR SCANNER - DASHBOARD                   ║
╚═══════════════════════════════════════════════════════════════╝

Dashboard: http://{settings.dashboard_host}:{settings.dashboard_port}
Press Ctrl+C to stop.
    """
    )
    uvicorn.run(
        "triscan.display.server:app",
        host=settings.dashboard_host,
        port=settings.dashboard_port,
        reload=False,
        log_level="warning",
    )


if __name__ == "__main__":
    main()
