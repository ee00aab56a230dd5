"""
报告 HTML 处理命令行工具
对保存下来的模型输出执行安全截断、两阶段合并和标签检查
"""

import os
import sys
import json
import logging
import argparse
from pathlib import Path
from typing import Dict, Any, Optional

# 添加项目根目录到 Python 路径
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from config import LogConfig, get_config_summary
from html_safety import (
    NO_CUT,
    DEFAULT_PROFILE,
    count_tag_balance,
    find_safe_cut,
    merge_second_request_html,
    prepare_html,
    safe_trim_to_completed_boundary,
)


# 配置日志
def setup_logging(log_level: str = None, log_file: str = None):
    """配置日志系统"""
    level = getattr(logging, log_level or LogConfig.LOG_LEVEL)
    log_format = LogConfig.LOG_FORMAT

    handlers = [logging.StreamHandler()]

    if log_file or LogConfig.LOG_FILE:
        file_handler = logging.FileHandler(
            log_file or LogConfig.LOG_FILE,
            encoding='utf-8'
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=log_format,
        handlers=handlers
    )


logger = logging.getLogger(__name__)


def _read_text(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def _write_output(text: str, output_file: Optional[str]):
    """写入输出文件，未指定时打印到标准输出"""
    if output_file:
        Path(output_file).parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(text)
        logger.info(f"💾 已保存: {output_file}")
    else:
        print(text)


def run_trim(input_file: str, output_file: Optional[str] = None) -> str:
    """
    截断到最后一个完成的项目并补齐标签

    Args:
        input_file: 模型原始输出文件
        output_file: 输出文件路径

    Returns:
        处理后的 HTML
    """
    raw = _read_text(input_file)
    html = prepare_html(raw)
    cut = find_safe_cut(html)
    if cut == NO_CUT:
        logger.info("✅ 没有找到需要截断的位置，仅补齐标签")
    else:
        logger.info(f"✂️ 截断位置: {cut}/{len(html)}")

    result = safe_trim_to_completed_boundary(raw)
    _write_output(result, output_file)
    return result


def run_merge(first_file: str, second_file: str, output_file: Optional[str] = None) -> str:
    """合并第一阶段和第二阶段的输出"""
    result = merge_second_request_html(_read_text(first_file), _read_text(second_file))
    logger.info(f"🔗 合并完成: {len(result)} 字符")
    _write_output(result, output_file)
    return result


def run_check(input_file: str) -> Dict[str, Any]:
    """
    统计各标签的开闭数量

    Returns:
        {"balanced": bool, "tags": {tag: {"opened", "closed", "missing"}}}
    """
    html = prepare_html(_read_text(input_file))
    balances = count_tag_balance(html, DEFAULT_PROFILE)
    report = {
        "length": len(html),
        "cut_index": find_safe_cut(html),
        "balanced": all(b.balanced for b in balances.values()),
        "tags": {
            tag: {"opened": b.opened, "closed": b.closed, "missing": b.missing}
            for tag, b in balances.items()
        },
    }
    print(json.dumps(report, indent=2, ensure_ascii=False))
    return report


def main(argv=None):
    """主函数：命令行入口"""
    parser = argparse.ArgumentParser(
        description='报告 HTML 处理工具 - 安全截断、两阶段合并与标签检查',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  python main.py trim partial.html -o trimmed.html
  python main.py merge first.html second.html -o report.html
  python main.py check partial.html
        """
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help=f'日志级别 (默认: {LogConfig.LOG_LEVEL})',
        default=None
    )

    parser.add_argument(
        '--log-file',
        help='日志文件路径',
        default=None
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    trim_parser = subparsers.add_parser('trim', help='截断到最后一个完成的项目')
    trim_parser.add_argument('input_file', help='模型输出文件路径')
    trim_parser.add_argument('-o', '--output', help='输出文件路径 (默认: 标准输出)', default=None)

    merge_parser = subparsers.add_parser('merge', help='合并两阶段输出')
    merge_parser.add_argument('first_file', help='第一阶段输出文件路径')
    merge_parser.add_argument('second_file', help='第二阶段输出文件路径')
    merge_parser.add_argument('-o', '--output', help='输出文件路径 (默认: 标准输出)', default=None)

    check_parser = subparsers.add_parser('check', help='统计标签开闭情况')
    check_parser.add_argument('input_file', help='HTML 文件路径')

    args = parser.parse_args(argv)

    # 配置日志
    setup_logging(args.log_level, args.log_file)
    logger.debug(f"配置摘要: {json.dumps(get_config_summary(), ensure_ascii=False)}")

    try:
        for path in (getattr(args, 'input_file', None), getattr(args, 'first_file', None),
                     getattr(args, 'second_file', None)):
            if path and not os.path.exists(path):
                logger.error(f"❌ 输入文件不存在: {path}")
                return 1

        if args.command == 'trim':
            run_trim(args.input_file, args.output)
        elif args.command == 'merge':
            run_merge(args.first_file, args.second_file, args.output)
        elif args.command == 'check':
            report = run_check(args.input_file)
            return 0 if report["balanced"] else 2

        return 0

    except KeyboardInterrupt:
        logger.warning("\n⚠️ 用户中断")
        return 130

    except Exception as e:
        logger.error(f"\n❌ 处理失败: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
