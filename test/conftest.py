def pytest_itemcollected(item):
    """테스트 함수의 docstring을 테스트 표시명으로 사용한다."""
    doc = getattr(item.obj, "__doc__", None)

    if doc:
        # parametrize 된 테스트는 id 를 붙여 표시명이 겹치지 않게 한다
        callspec = getattr(item, "callspec", None)
        suffix = f"[{callspec.id}]" if callspec else ""
        item._nodeid = f"{doc.strip()}{suffix}"
