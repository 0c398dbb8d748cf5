import logging, platform, sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

import config
from errors import PrintTrayError
from logging_config import get_logger, setup_logging
from service import PrintService
from surface import PlaywrightSurface

__version__ = '1.0.0'

logger = get_logger(__name__)


def create_app(service: Optional[PrintService] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        svc = service or PrintService(PlaywrightSurface(headless=config.HEADLESS))
        await svc.start()
        app.state.service = svc
        logger.info('Print tray API listening on http://%s:%s', config.SERVER_HOST, config.SERVER_PORT)
        try:
            yield
        finally:
            await svc.stop()

    app = FastAPI(title="Print Tray Service", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get('/health')
    def api_health():
        return JSONResponse({
            'status': 'ok',
            'platform': sys.platform,
            'release': platform.release(),
            'version': __version__,
        })

    @app.get('/printers')
    async def api_printers(request: Request):
        try:
            printers = await request.app.state.service.list_printers()
            return JSONResponse({'printers': printers})
        except Exception as e:
            logger.error('Failed to list printers: %s', e)
            raise HTTPException(status_code=500, detail='Failed to list printers')

    @app.post('/print')
    async def api_print(request: Request):
        try:
            body = await request.json()
        except Exception:
            body = {}
        try:
            ok = await request.app.state.service.print(body)
        except PrintTrayError as e:
            log = logger.warning if e.status_code < 500 else logger.error
            log('Print job failed: %s', e)
            raise HTTPException(status_code=e.status_code, detail=e.message)
        except Exception as e:
            logger.exception('Print job failed')
            raise HTTPException(status_code=500, detail=str(e) or 'Print job failed')
        return JSONResponse({'success': bool(ok)})

    return app


app = create_app()


def run():
    log_dir = Path(config.LOG_DIR) if config.LOG_DIR else None
    setup_logging(log_level=getattr(logging, config.LOG_LEVEL, logging.INFO), log_dir=log_dir, enable_file_logging=config.LOG_TO_FILE)
    import uvicorn
    uvicorn.run('main:app', host=config.SERVER_HOST, port=config.SERVER_PORT, reload=False)


if __name__ == '__main__':
    run()
