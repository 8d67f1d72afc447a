"""데이터 액세스 레이어."""
