"""
FenCi FastAPI 服务

提供 RESTful 分词接口
"""

import os
import time
import uuid
from typing import List, Literal, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from fenci.engine import (
    InvalidInputError,
    Segmenter,
    SegmenterConfig,
    create_segmenter,
    get_api_logger,
    validate_sentence,
)

logger = get_api_logger()


# ===== 请求/响应模型 =====

class CutRequest(BaseModel):
    """分词请求"""
    text: str = Field(..., description="待切分文本")
    mode: Literal["default", "all", "search"] = Field("default", description="切分模式")
    hmm: bool = Field(True, description="是否识别未登录词")


class CutResponse(BaseModel):
    """分词响应"""
    words: List[str]
    metadata: Optional[dict] = None


class TokenizeRequest(BaseModel):
    """带位置的分词请求"""
    text: str = Field(..., description="待切分文本")
    mode: Literal["default", "search"] = Field("default", description="切分模式")
    hmm: bool = Field(True, description="是否识别未登录词")


class TokenItem(BaseModel):
    """词及其字符位置"""
    word: str
    start: int
    end: int


class TokenizeResponse(BaseModel):
    tokens: List[TokenItem]


class HealthResponse(BaseModel):
    """健康检查响应"""
    status: str
    version: str
    words: int = 0
    hmm: bool = False


# ===== 全局分词器实例 =====
segmenter: Optional[Segmenter] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    global segmenter

    logger.info("FenCi API 服务启动，正在初始化分词器...")
    # 已经注入（例如测试中）时不再重复加载
    if segmenter is None:
        segmenter = create_segmenter(SegmenterConfig.from_env())
    logger.info(f"分词器初始化完成 | HMM: {'✓' if segmenter.hmm_enabled else '✗'}")

    yield

    logger.info("FenCi API 服务已停止")
    segmenter = None


# ===== FastAPI 应用 =====
app = FastAPI(
    title="FenCi API",
    description="中文分词引擎 API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===== 请求日志中间件 =====

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """记录所有请求的耗时与状态码"""
    request_id = str(uuid.uuid4())[:8]
    start_time = time.perf_counter()

    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"[{request_id}] --> {request.method} {request.url.path} | IP: {client_ip}")

    try:
        response = await call_next(request)
    except Exception as e:
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.error(f"[{request_id}] <-- ERROR | {elapsed_ms:.2f}ms | {type(e).__name__}: {e}")
        raise

    elapsed_ms = (time.perf_counter() - start_time) * 1000
    status_code = response.status_code
    log_level = "info" if status_code < 400 else "warning" if status_code < 500 else "error"
    getattr(logger, log_level)(f"[{request_id}] <-- {status_code} | {elapsed_ms:.2f}ms")

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
    return response


def _require_segmenter() -> Segmenter:
    if segmenter is None:
        logger.error("分词器未就绪，拒绝请求")
        raise HTTPException(status_code=503, detail="分词器未就绪")
    return segmenter


def _validated(text: str) -> str:
    try:
        return validate_sentence(text)
    except InvalidInputError as e:
        logger.warning(f"无效请求: {e}")
        raise HTTPException(status_code=400, detail=str(e))


# ===== API 路由 =====

@app.get("/health", response_model=HealthResponse)
async def health_check():
    """健康检查"""
    from fenci import __version__
    if segmenter is None:
        return HealthResponse(status="not_ready", version=__version__)
    return HealthResponse(
        status="healthy",
        version=__version__,
        words=len(segmenter.dictionary),
        hmm=segmenter.hmm_enabled,
    )


@app.post("/cut", response_model=CutResponse)
async def cut(request: CutRequest):
    """分词"""
    seg = _require_segmenter()
    text = _validated(request.text)

    start = time.perf_counter()
    if request.mode == "all":
        words = seg.cut_all(text)
    elif request.mode == "search":
        words = seg.cut_for_search(text, hmm=request.hmm)
    else:
        words = seg.cut(text, hmm=request.hmm)
    elapsed = (time.perf_counter() - start) * 1000

    logger.debug(f"分词: '{text[:20]}' | mode={request.mode} | {len(words)} 词 | {elapsed:.2f}ms")
    return CutResponse(words=words, metadata={"elapsed_ms": round(elapsed, 2)})


@app.get("/cut/simple")
async def simple_cut(text: str, mode: Literal["default", "all", "search"] = "default"):
    """简单查询接口"""
    seg = _require_segmenter()
    text = _validated(text)
    if mode == "all":
        words = seg.cut_all(text)
    else:
        words = seg.cut_with_mode(text, mode)
    return {"text": text, "words": words}


@app.post("/tokenize", response_model=TokenizeResponse)
async def tokenize(request: TokenizeRequest):
    """分词并返回字符位置"""
    seg = _require_segmenter()
    text = _validated(request.text)
    tokens = seg.tokenize(text, request.mode, hmm=request.hmm)
    return TokenizeResponse(
        tokens=[TokenItem(word=t.word, start=t.start, end=t.end) for t in tokens]
    )


# ===== 启动入口 =====

def main():
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    log_level = os.getenv("LOG_LEVEL", "info").lower()

    logger.info(f"启动 FenCi API 服务: http://{host}:{port}")
    logger.info(f"API 文档: http://{host}:{port}/docs")

    uvicorn.run(
        "fenci.api.server:app",
        host=host,
        port=port,
        reload=False,
        workers=1,
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
