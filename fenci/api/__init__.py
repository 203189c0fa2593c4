# HTTP 接口
