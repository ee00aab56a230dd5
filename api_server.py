"""
运势报告生成 API 服务 - 主入口
提供报告流式生成、两阶段结果合并和安全截断接口
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
from dotenv import load_dotenv

# 加载环境变量
load_dotenv()

# 导入路由模块
from report_routes import router as report_router

# 创建 FastAPI 应用
app = FastAPI(title="Fortune Report API", version="1.0.0")

# 配置 CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(report_router, tags=["Report"])


@app.get("/")
async def root():
    """API 根路径"""
    return {
        "message": "Fortune Report API",
        "version": "1.0.0",
        "description": "运势报告流式生成与 HTML 安全截断 API",
        "endpoints": {
            "report": {
                "stream": "POST /api/report/stream",
                "merge": "POST /api/report/merge",
                "safe_trim": "POST /api/report/safe-trim"
            }
        },
        "modules": {
            "report_routes": "报告生成与 HTML 处理"
        }
    }


@app.get("/health")
async def health_check():
    """健康检查"""
    return {"status": "healthy", "version": "1.0.0"}


if __name__ == "__main__":
    print("🚀 启动运势报告 API 服务...")
    print("🔮 报告路由: /api/report/*")
    print("📖 API 文档: http://localhost:8000/docs")

    uvicorn.run(
        "api_server:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
