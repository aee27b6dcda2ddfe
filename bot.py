from flask import Flask, request, jsonify
import sys
import time
import logging

from komaribot import __version__
from komaribot.config_manager import config_manager
from komaribot.handler import dispatch_event
from komaribot.logger_manager import logger_manager
from komaribot.utils import logger

# ========== Flask应用初始化 ==========
app = Flask(__name__)
app.config['PROPAGATE_EXCEPTIONS'] = True
START_TIME = time.time()


@app.route('/callback', methods=['POST'])
def callback():
    context = {
        'client_ip': request.remote_addr,
        'request_id': str(time.time())[-6:],
    }

    data = request.get_json(silent=True)
    if data is None:
        logger_manager.log_with_context(logger, logging.WARNING, '请求体无法解析为JSON格式', context)
        return jsonify({"retcode": 400, "msg": "无效的JSON格式"}), 400

    try:
        handled = dispatch_event(data)
    except Exception as e:
        # 单条消息处理失败不影响服务
        logger_manager.log_with_context(logger, logging.ERROR, f'命令分发异常: {str(e)}', context, exc_info=True)
        return jsonify({"retcode": 500, "msg": "服务繁忙，请稍后再试"}), 500

    context['handled'] = handled
    logger_manager.log_with_context(logger, logging.DEBUG, '请求处理完成', context)
    return jsonify({"retcode": 0})


@app.route('/health', methods=['GET'])
def health_check():
    """健康检查端点"""
    return jsonify({
        "status": "healthy",
        "service": "KomariBot",
        "version": __version__,
        "uptime_seconds": int(time.time() - START_TIME),
        "komari_configured": bool(config_manager.get("komari_url")),
    })


@app.errorhandler(404)
def not_found(error):
    logger_manager.log_with_context(logger, logging.WARNING, '404页面未找到', {'path': request.path})
    return jsonify({"retcode": 404, "msg": "接口不存在"}), 404


@app.errorhandler(405)
def method_not_allowed(error):
    logger_manager.log_with_context(logger, logging.WARNING, f'方法不允许: {request.method}', {'path': request.path})
    return jsonify({"retcode": 405, "msg": "不支持的请求方法"}), 405


def main():
    if not config_manager.load():
        print("❌ 配置加载失败，请检查配置文件或环境变量")
        sys.exit(1)

    logger_manager.setup(
        log_level=config_manager.get("log_level"),
        structured=config_manager.get("debug_mode"),
        log_dir=config_manager.get("log_dir"),
        encoding=config_manager.get("log_encoding"),
    )

    port = config_manager.get("callback_port")
    logger.info(f"\n====== KomariBot v{__version__} 启动 ======")
    logger.info(f"📡 回调地址：http://localhost:{port}/callback")
    if not config_manager.get("komari_url"):
        logger.warning("⚠️ 未配置 Komari 服务器地址，查询指令将返回提示信息")

    try:
        app.run(host='0.0.0.0', port=port, debug=False, use_reloader=False)
    except KeyboardInterrupt:
        logger.info("✅ 服务已关闭")
    except OSError as e:
        logger.critical(f"❌ Flask服务启动失败: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
