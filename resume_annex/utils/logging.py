"""
Logging utilities for the intake engine.
"""
import os
import logging


def setup_logging(log_file_path: str, level: str = "INFO") -> str:
    """
    Set up logging to file with minimal console output.
    
    Args:
        log_file_path: Full path to the log file
        level: Level name for the file handler (DEBUG, INFO, ...)
        
    Returns:
        Path to the log file
    """
    # Extract directory from log file path and create it
    log_dir = os.path.dirname(log_file_path)
    if log_dir:  # Only create directory if path has a directory component
        os.makedirs(log_dir, exist_ok=True)
    
    # Clear any existing handlers
    logging.getLogger().handlers.clear()
    
    # File handler for detailed logs
    file_handler = logging.FileHandler(log_file_path, mode='a', encoding='utf-8')
    file_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    file_formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s - %(message)s')
    file_handler.setFormatter(file_formatter)
    
    # Console handler for warnings and above; uvicorn prints its own access log
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_formatter = logging.Formatter('%(levelname)s %(name)s - %(message)s')
    console_handler.setFormatter(console_formatter)
    
    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    
    return log_file_path
