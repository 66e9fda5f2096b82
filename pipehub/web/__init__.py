"""pipehub Web API（基于 Flask）"""
