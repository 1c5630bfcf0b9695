"""API 路由"""
from fastapi import APIRouter
from .v1 import auth, users, links, bio, dashboard, public

api_router = APIRouter()

# 注册路由
api_router.include_router(auth.router, prefix="/auth", tags=["认证"])
api_router.include_router(users.router, prefix="/users", tags=["用户"])
api_router.include_router(links.router, prefix="/links", tags=["短链"])
api_router.include_router(bio.router, prefix="/bio", tags=["Bio 页面"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["仪表盘"])
api_router.include_router(public.router, prefix="/public", tags=["公开访问"])
