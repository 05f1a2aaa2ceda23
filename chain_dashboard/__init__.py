# chain_dashboard — CSV time-series pipeline behind the Solana vs Ethereum dashboard

__version__ = "0.1.0"
