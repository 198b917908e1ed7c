"""FastAPI application assembly."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from recurring_planner.core.clock import init_timezone
from recurring_planner.core.config import PROXY_PREFIX
from recurring_planner.core.db import _init_db, refresh_engine_from_env
from recurring_planner.web.routers import (
    calendar_router,
    day_router,
    occurrences_router,
    templates_router,
    todos_router,
)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    # 日本語: 起動時にマイグレーション適用を保証 / English: Ensure migrations are applied on startup
    _init_db()
    yield


def create_app(zone_name: str | None = None) -> FastAPI:
    # 日本語: 不正なタイムゾーンは起動時に失敗させる / English: An unknown zone fails here, before any request is served
    init_timezone(zone_name)
    # 日本語: 実行時の DATABASE_URL を反映 / English: Pick up a DATABASE_URL changed after import
    refresh_engine_from_env()

    # 日本語: 逆プロキシ配下運用を想定して root_path を環境変数から解決 / English: Resolve root_path from env for reverse-proxy deployments
    proxy_prefix = os.getenv("PROXY_PREFIX", PROXY_PREFIX)

    # 日本語: FastAPI アプリ本体を作成 / English: Create root FastAPI application
    app = FastAPI(title="Recurring Planner", root_path=proxy_prefix, lifespan=_lifespan)
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

    # 日本語: 機能別ルーターを順次登録 / English: Register feature routers
    app.include_router(calendar_router)
    app.include_router(day_router)
    app.include_router(templates_router)
    app.include_router(occurrences_router)
    app.include_router(todos_router)

    return app


# 日本語: import 時点で既定アプリを構築 / English: Build default app instance at import time
app = create_app()
