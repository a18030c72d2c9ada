from __future__ import annotations

import uvicorn

from tunnelsim.settings import settings


def main() -> None:
    uvicorn.run("tunnelsim.api.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
