"""
Configuration module for the task scheduler.
Loads settings from environment variables or .env file.
任务调度器配置模块。
从环境变量或 .env 文件加载所有配置项。
"""

import os
from dotenv import load_dotenv

load_dotenv()  # 自动读取项目根目录的 .env 文件（若存在），优先级低于系统环境变量

# --- Frontier ordering ---
# --- 就绪队列排序 ---
# "name" = lexicographic by task name | "registration" = first-registered-first-scheduled
# "name"=按任务名字典序 | "registration"=先注册先调度
TIE_BREAK = os.getenv("SCHEDULER_TIE_BREAK", "name")

# --- Dangling dependencies ---
# --- 悬空依赖 ---
# Dependencies that never get registered are ignored by the algorithm; this only controls the warning.
# 从未注册的依赖名会被算法忽略；此开关只控制是否输出警告日志。
WARN_DANGLING = os.getenv("SCHEDULER_WARN_DANGLING", "true").lower() == "true"
