"""설정, 로깅, 예외, DB, 컨텍스트."""
