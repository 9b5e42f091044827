from app.analysis.client_base import BaseAnalysisClient
from app.analysis.invoker import AnalysisInvoker
from app.analysis.lambda_client_adapter import LambdaClientAdapter

__all__ = ["AnalysisInvoker", "BaseAnalysisClient", "LambdaClientAdapter"]
