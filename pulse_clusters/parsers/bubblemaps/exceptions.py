class ClusterAnalysisError(Exception):
    pass


class NoHoldersFoundError(ClusterAnalysisError):
    def __init__(self, token_address: str = "") -> None:
        super().__init__("No token holders found or invalid token address")
        self.token_address = token_address
