from utils.constants import Defaults

def validate_page_params(page: int, page_size: int, max_page_size: int = Defaults.MAX_PAGE_SIZE) -> tuple[int, int]:
    p = int(page)
    ps = int(page_size)
    if p < 1:
        raise ValueError('page must be >= 1')
    if ps < 1:
        raise ValueError('page_size must be >= 1')
    if ps > max_page_size:
        raise ValueError(f'page_size must be <= {max_page_size}')
    return p, ps

def skip_for(page: int, page_size: int) -> int:
    return (page - 1) * page_size
