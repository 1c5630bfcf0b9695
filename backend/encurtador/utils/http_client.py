"""
安全的 HTTP 客户端工具

用于抓取目标网页的标题，带安全防护：
- SSRF 防护（禁止访问内网地址）
- 协议限制（只允许 http/https）
- 超时、重定向和响应大小限制
"""

import asyncio
import re
import socket
import ipaddress
from urllib.parse import urlparse
from typing import Dict, List, Optional
import httpx


# ==================== 安全配置 ====================

# 禁止访问的内网 IP 段
BLOCKED_IP_RANGES = [
    ipaddress.ip_network("127.0.0.0/8"),      # localhost
    ipaddress.ip_network("10.0.0.0/8"),       # 私有网络
    ipaddress.ip_network("172.16.0.0/12"),    # 私有网络
    ipaddress.ip_network("192.168.0.0/16"),   # 私有网络
    ipaddress.ip_network("169.254.0.0/16"),   # 链路本地
    ipaddress.ip_network("0.0.0.0/8"),        # 当前网络
    ipaddress.ip_network("::1/128"),          # IPv6 localhost
    ipaddress.ip_network("fc00::/7"),         # IPv6 私有
    ipaddress.ip_network("fe80::/10"),        # IPv6 链路本地
]

# 禁止访问的主机名
BLOCKED_HOSTNAMES = [
    "localhost",
    "metadata.google.internal",  # GCP 元数据服务
]

ALLOWED_SCHEMES = ["http", "https"]

DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_REDIRECTS = 3
DEFAULT_MAX_RESPONSE_SIZE = 2 * 1024 * 1024  # 2MB
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; EncurtadorBot/1.0)"


class SSRFError(Exception):
    """SSRF 安全错误"""
    pass


def is_ip_blocked(ip: str) -> bool:
    """检查 IP 是否在禁止列表中"""
    try:
        ip_obj = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return any(ip_obj in blocked_range for blocked_range in BLOCKED_IP_RANGES)


async def resolve_host(hostname: str) -> List[str]:
    """在事件循环中解析域名，返回全部 IP"""
    loop = asyncio.get_running_loop()
    try:
        resolved = await loop.getaddrinfo(hostname, None, family=socket.AF_UNSPEC, type=socket.SOCK_STREAM)
    except socket.gaierror:
        raise SSRFError(f"无法解析域名: {hostname}")
    return [sockaddr[0] for _family, _type, _proto, _canonname, sockaddr in resolved]


async def validate_url(url: str) -> str:
    """
    验证 URL 安全性
    
    Raises:
        SSRFError: 如果 URL 不安全
    """
    if not url:
        raise SSRFError("URL 不能为空")
    
    parsed = urlparse(url)
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise SSRFError(f"不允许的协议: {parsed.scheme}")
    
    hostname = parsed.hostname
    if not hostname:
        raise SSRFError("URL 缺少主机名")
    
    hostname = hostname.lower()
    if hostname in BLOCKED_HOSTNAMES or hostname.endswith(".localhost"):
        raise SSRFError(f"禁止访问的主机: {hostname}")
    
    if is_ip_blocked(hostname):
        raise SSRFError(f"禁止访问内网地址: {hostname}")
    
    for address in await resolve_host(hostname):
        if is_ip_blocked(address):
            raise SSRFError(f"域名 {hostname} 解析到内网地址: {address}")
    
    return url


async def safe_fetch(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    max_redirects: int = DEFAULT_MAX_REDIRECTS,
    max_size: int = DEFAULT_MAX_RESPONSE_SIZE,
) -> httpx.Response:
    """
    安全的 GET 请求
    
    Raises:
        SSRFError: 如果 URL 或重定向目标不安全
        httpx.HTTPError: HTTP 请求错误
    """
    validated_url = await validate_url(url)
    headers = {
        "User-Agent": DEFAULT_USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/json;q=0.9,*/*;q=0.8",
        "Accept-Language": "pt-BR,pt;q=0.9,en;q=0.8",
    }
    
    async def check_redirect(request: httpx.Request):
        await validate_url(str(request.url))
    
    async with httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        max_redirects=max_redirects,
        event_hooks={"request": [check_redirect]},
    ) as client:
        response = await client.get(validated_url, headers=headers)
        
        content_length = response.headers.get("content-length")
        if content_length and int(content_length) > max_size:
            raise SSRFError(f"响应大小超限: {content_length} > {max_size}")
        
        return response


# ==================== 网页信息提取 ====================

def _meta_content(html: str, attr: str, name: str) -> Optional[str]:
    """读取 <meta attr=name content=...>，兼容属性顺序颠倒"""
    patterns = [
        rf'<meta[^>]+{attr}=["\']{re.escape(name)}["\'][^>]+content=["\']([^"\']+)["\']',
        rf'<meta[^>]+content=["\']([^"\']+)["\'][^>]+{attr}=["\']{re.escape(name)}["\']',
    ]
    for pattern in patterns:
        match = re.search(pattern, html, re.IGNORECASE)
        if match:
            return match.group(1).strip()
    return None


def extract_meta_info(html: str) -> Dict[str, str]:
    """从 HTML 中提取标题和描述"""
    meta_info = {
        "title": "",
        "description": "",
        "og_title": "",
        "og_description": "",
    }
    if not html:
        return meta_info
    
    title_match = re.search(r'<title[^>]*>([^<]+)</title>', html, re.IGNORECASE)
    if title_match:
        meta_info["title"] = title_match.group(1).strip()
    
    meta_info["description"] = _meta_content(html, "name", "description") or ""
    meta_info["og_title"] = _meta_content(html, "property", "og:title") or ""
    meta_info["og_description"] = _meta_content(html, "property", "og:description") or ""
    return meta_info
