from __future__ import annotations

import logging

from flask import Flask, Response, request

from edge_headlines import HeadlinesConfig, HeadlinesService

_config = HeadlinesConfig.from_env()
logging.basicConfig(
    level=_config.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = Flask(__name__)
_service = HeadlinesService(_config)


@app.get("/health")
def healthcheck():
    return {"status": "ok"}


@app.get("/headlines")
def headlines():
    limit, community = _service.parse_query(request.args)
    try:
        result = _service.headlines(limit=limit, community=community)
    except Exception:  # pragma: no cover - runtime guard
        app.logger.exception("Uncaught exception when handling /headlines")
        result = _service.error_response("Unexpected server error")
    return Response(result.body, status=200, headers=result.headers)


if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=8008)
