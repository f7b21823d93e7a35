import httpx
from httpx import AsyncClient


def get_retry_client(base_url: str, timeout: float = 10.0, retries: int = 3, headers: dict = None) -> AsyncClient:
    """
    재시도 로직이 포함된 AsyncClient 인스턴스를 반환합니다.
    연결 오류 발생 시 retries 횟수만큼 재시도하며, 모든 요청에 timeout(초)을 적용합니다.
    """
    transport = httpx.AsyncHTTPTransport(retries=retries)
    return AsyncClient(base_url=base_url, transport=transport, timeout=timeout, headers=headers or {})
