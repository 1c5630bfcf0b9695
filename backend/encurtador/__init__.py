"""Encurtador: 短链接与 Bio 页面服务"""
